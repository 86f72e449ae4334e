"""Taxonomies: dictionaries mapping ordinals to field names."""

from typing import Dict, Iterable, Optional, Tuple


class Taxonomy:
    """Lookup interface used by wire messages to resolve compressed tags."""

    def get_field_name(self, ordinal: int) -> Optional[str]:
        raise NotImplementedError

    def get_field_ordinal(self, name: str) -> Optional[int]:
        raise NotImplementedError


class MapTaxonomy(Taxonomy):
    """Taxonomy backed by a pair of dictionaries."""

    def __init__(self, entries: Iterable[Tuple[int, str]] = ()):
        self._names: Dict[int, str] = {}
        self._ordinals: Dict[str, int] = {}
        for ordinal, name in entries:
            if ordinal in self._names:
                raise ValueError(f"duplicate taxonomy ordinal {ordinal}")
            if name in self._ordinals:
                raise ValueError(f"duplicate taxonomy name '{name}'")
            self._names[ordinal] = name
            self._ordinals[name] = ordinal

    def get_field_name(self, ordinal: int) -> Optional[str]:
        return self._names.get(ordinal)

    def get_field_ordinal(self, name: str) -> Optional[int]:
        return self._ordinals.get(name)

    def __len__(self):
        return len(self._names)

    def __repr__(self):
        return f"{type(self).__name__}({sorted(self._names.items())!r})"
