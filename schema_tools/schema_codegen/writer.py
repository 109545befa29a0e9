"""Append-only text buffer with indent tracking."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

INDENT: str = "  "


class CodeWriter:
    """Accumulates lines of source at a tracked nesting depth.

    Multi-line fragments passed to :meth:`line` are reindented as a unit:
    every line of the fragment gets the current prefix, so nested
    expressions can be produced independently at column zero and placed
    at any depth.
    """

    __slots__ = ("_parts", "_level", "_unit")

    def __init__(self, level: int = 0, unit: str = INDENT) -> None:
        self._parts: list[str] = []
        self._level = level
        self._unit = unit

    @property
    def level(self) -> int:
        return self._level

    @property
    def prefix(self) -> str:
        return self._unit * self._level

    def line(self, text: str = "") -> None:
        prefix = self.prefix
        for part in text.split("\n"):
            self._parts.append(f"{prefix}{part}\n" if part else "\n")

    @contextmanager
    def indented(self, levels: int = 1) -> Iterator[CodeWriter]:
        self._level += levels
        try:
            yield self
        finally:
            self._level -= levels

    def getvalue(self) -> str:
        return "".join(self._parts)

    def expression(self) -> str:
        """Return the buffer as an inline expression (no trailing newline)."""
        return self.getvalue().rstrip("\n")
