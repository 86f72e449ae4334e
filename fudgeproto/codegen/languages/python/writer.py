"""
Indentation-aware line writer for generated method bodies.
"""

from contextlib import contextmanager
from typing import Iterator, List


class CodeWriter:
    """Collects lines of Python source at a tracked indentation level."""

    def __init__(self, indent_size: int = 4):
        self.indent_size = indent_size
        self._level = 0
        self._lines: List[str] = []

    def line(self, text: str = "") -> "CodeWriter":
        if text:
            self._lines.append(" " * (self._level * self.indent_size) + text)
        else:
            self._lines.append("")
        return self

    def lines(self, *texts: str) -> "CodeWriter":
        for text in texts:
            self.line(text)
        return self

    def blank(self) -> "CodeWriter":
        if self._lines and self._lines[-1]:
            self._lines.append("")
        return self

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._level += 1
        try:
            yield
        finally:
            self._level -= 1

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        """Write ``header`` (which ends in a colon) and indent its body."""
        self.line(header)
        with self.indented():
            yield

    def method(self, signature: str, decorator: str = None) -> "_Method":
        """Open a ``def`` block, separated from the previous member by a blank line."""
        self.blank()
        if decorator:
            self.line(decorator)
        return _Method(self, signature)

    @property
    def empty(self) -> bool:
        return not self._lines

    def getvalue(self) -> str:
        return "\n".join(self._lines)


class _Method:
    """Context manager for a method body; an empty body gets ``pass``."""

    def __init__(self, writer: CodeWriter, signature: str):
        self.writer = writer
        self.signature = signature
        self._start = 0

    def __enter__(self) -> CodeWriter:
        self.writer.line(f"def {self.signature}:")
        self.writer._level += 1
        self._start = len(self.writer._lines)
        return self.writer

    def __exit__(self, exc_type, exc, tb):
        if len(self.writer._lines) == self._start:
            self.writer.line("pass")
        self.writer._level -= 1
        return False
