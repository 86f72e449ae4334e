# tests/test_config.py
"""
Tests for configuration loading: language defaults, file and override
merging, saving and validation, plus the Python backend's own settings.
"""

import json

import pytest

from fudgeproto.codegen.core.config import (
    EXAMPLE_PYTHON_CONFIG,
    ConfigError,
    ConfigManager,
    GeneratorConfig,
    get_config_manager,
    load_config,
)
from fudgeproto.codegen.languages.python import PythonConfig, get_default_config


@pytest.fixture
def manager():
    return ConfigManager()


class TestDefaults:

    def test_python(self, manager):
        config = manager.get_config("python")
        assert config.indent_size == 4
        assert config.add_comments is True
        assert config.datetime_type == "datetime"
        assert config.runtime_module == "fudgeproto.runtime"
        assert config.custom == {"runtime_alias": "fudge", "registry_name": "DECODERS"}

    def test_manifest(self, manager):
        config = manager.get_config("manifest")
        assert config.indent_size == 2
        assert config.add_comments is False
        assert config.custom == {"include_positions": True}

    def test_unknown_language(self, manager):
        assert manager.get_config("cobol") == GeneratorConfig()

    def test_defaults_are_not_shared(self, manager):
        manager.get_config("python").custom["runtime_alias"] = "changed"
        assert manager.get_config("python").custom["runtime_alias"] == "fudge"

    def test_languages(self, manager):
        assert manager.list_languages() == ["python", "manifest"]


class TestMerging:

    def test_overrides(self, manager):
        config = manager.get_config("python", {"indent_size": 2, "to_from_with_context": True})
        assert config.indent_size == 2
        assert config.to_from_with_context is True
        assert config.add_comments is True

    def test_unknown_keys_go_to_custom(self, manager):
        config = manager.get_config("python", {"registry_name": "REG", "extra": 1})
        assert config.custom == {"runtime_alias": "fudge", "registry_name": "REG", "extra": 1}

    def test_custom_dict_is_merged(self, manager):
        config = manager.get_config("python", {"custom": {"runtime_alias": "wire"}})
        assert config.custom == {"runtime_alias": "wire", "registry_name": "DECODERS"}

    def test_file_then_overrides(self, manager, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"package_name": "from_file", "indent_size": 8}))
        config = manager.get_config("python", {"indent_size": 2}, path)
        assert config.package_name == "from_file"
        assert config.indent_size == 2

    def test_example_config(self, manager, tmp_path):
        path = tmp_path / "example.json"
        path.write_text(json.dumps(EXAMPLE_PYTHON_CONFIG))
        config = manager.get_config("python", config_file=path)
        assert config.package_name == "shapes.messages"
        assert config.datetime_type == "instant"
        assert manager.validate_config(config, "python") == []


class TestConfigFiles:

    def test_missing(self, manager, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            manager.get_config("python", config_file=tmp_path / "nope.json")

    def test_not_json_suffix(self, manager, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("indent_size: 2")
        with pytest.raises(ConfigError, match="must be JSON"):
            manager.get_config("python", config_file=path)

    def test_invalid_json(self, manager, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{indent_size: 2")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            manager.get_config("python", config_file=path)

    def test_not_an_object(self, manager, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="must contain a JSON object"):
            manager.get_config("python", config_file=path)

    def test_save_and_reload(self, manager, tmp_path):
        config = manager.get_config("python", {"package_name": "pkg", "registry_name": "REG"})
        path = tmp_path / "saved.json"
        manager.save_config(config, path)

        saved = json.loads(path.read_text())
        assert "custom" not in saved
        assert saved["registry_name"] == "REG"
        assert manager.get_config(config_file=path) == config


class TestValidation:

    @pytest.mark.parametrize("overrides,expected", [
        ({"datetime_type": "epoch"}, "Invalid datetime_type: epoch"),
        ({"indent_size": 0}, "Invalid indent_size: 0"),
        ({"package_name": "my-package"}, "Invalid Python package name: my-package"),
        ({"runtime_module": "fudge runtime"}, "Invalid runtime_module: fudge runtime"),
    ], ids=["datetime_type", "indent", "package", "runtime_module"])
    def test_warnings(self, manager, overrides, expected):
        config = manager.get_config("python", overrides)
        assert manager.validate_config(config, "python") == [expected]

    def test_python_only_checks(self, manager):
        config = manager.get_config("manifest", {"package_name": "my-package"})
        assert manager.validate_config(config, "manifest") == []


class TestGlobalManager:

    def test_singleton(self):
        assert get_config_manager() is get_config_manager()

    def test_load_config(self):
        assert load_config("python", {"add_comments": False}).add_comments is False


class TestPythonConfig:

    def test_defaults(self):
        config = get_default_config()
        assert config.runtime_alias == "fudge"
        assert config.registry_name == "DECODERS"
        assert config.docstrings is True

    @pytest.mark.parametrize("kwargs,match", [
        ({"runtime_alias": "1fudge"}, "runtime_alias must be a Python identifier"),
        ({"runtime_alias": "import"}, "runtime_alias must be a Python identifier"),
        ({"registry_name": 5}, "registry_name must be a Python identifier"),
        ({"runtime_alias": "x", "registry_name": "x"}, "must differ"),
    ], ids=["digit", "keyword", "not_a_string", "same"])
    def test_invalid(self, kwargs, match):
        with pytest.raises(ConfigError, match=match):
            PythonConfig(**kwargs)

    def test_ignores_unrelated_settings(self):
        config = PythonConfig(include_positions=False, runtime_alias="wire")
        assert config.runtime_alias == "wire"
