"""
Small shared utilities.
"""
from __future__ import annotations

import json
import threading
import time
from contextlib import contextmanager
from typing import Any, Generator


@contextmanager
def timer() -> Generator[dict, None, None]:
    """Context manager that records elapsed wall-clock milliseconds."""
    result: dict = {}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["elapsed_ms"] = int((time.perf_counter() - start) * 1000)


class RequestSequencer:
    """Hands out increasing tickets per logical operation.

    A response is applied only if its ticket is still the newest one issued
    for that operation; anything older resolved late and is dropped.
    """

    def __init__(self) -> None:
        self._latest: dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, operation: str = "default") -> int:
        with self._lock:
            ticket = self._latest.get(operation, 0) + 1
            self._latest[operation] = ticket
            return ticket

    def is_latest(self, operation: str, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(operation) == ticket


def compact_json(obj: Any, indent: int = 2) -> str:
    """Indented JSON that keeps arrays of scalars on a single line.

    ``{"columns": ["Name", "Total"]}`` stays readable in the query panel
    instead of spreading one column per line.
    """

    def _render(value: Any, level: int) -> str:
        pad = " " * (indent * level)
        inner = " " * (indent * (level + 1))
        if isinstance(value, dict):
            if not value:
                return "{}"
            items = [
                f"{inner}{json.dumps(str(k), ensure_ascii=False)}: {_render(v, level + 1)}"
                for k, v in value.items()
            ]
            return "{\n" + ",\n".join(items) + "\n" + pad + "}"
        if isinstance(value, list):
            if not any(isinstance(v, (dict, list)) for v in value):
                return json.dumps(value, ensure_ascii=False)
            items = [inner + _render(v, level + 1) for v in value]
            return "[\n" + ",\n".join(items) + "\n" + pad + "]"
        return json.dumps(value, ensure_ascii=False)

    return _render(obj, 0)
