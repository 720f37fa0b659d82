"""
Maps model entities back to lines of the JSON text the user is editing.

The reconciler only depends on the ``LineLocator`` protocol, so a locator
that walks the parsed JSON structure can replace the substring scan without
touching it.
"""
from __future__ import annotations

from typing import Protocol

NOT_FOUND = -1


class LineLocator(Protocol):
    def locate(self, name: str, start_line: int = 0) -> int:
        """0-indexed line declaring *name*, searching from *start_line*; -1 if absent."""
        ...


class SubstringLineLocator:
    """First line containing ``"name": "<name>"``, scanning top-down.

    Plain substring match: a name embedded in a longer quoted name can
    match first.
    """

    def __init__(self, source_text: str):
        self._lines = source_text.split("\n")

    def locate(self, name: str, start_line: int = 0) -> int:
        needle = f'"name": "{name}"'
        for i in range(max(start_line, 0), len(self._lines)):
            if needle in self._lines[i]:
                return i
        return NOT_FOUND
