from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DefinitionCache(Protocol):
    """Storage for data the engine derives from classes (signatures, type hints)."""

    def fetch(self, key: str) -> object | None: ...

    def save(self, key: str, data: object) -> bool: ...


class ArrayCache:
    """Process-lifetime cache backed by a dict."""

    def __init__(self) -> None:
        self._data: dict[str, object] = {}

    def fetch(self, key: str) -> object | None:
        return self._data.get(key)

    def save(self, key: str, data: object) -> bool:
        self._data[key] = data
        return True


class VoidCache:
    """Cache that never stores anything."""

    def fetch(self, key: str) -> object | None:
        return None

    def save(self, key: str, data: object) -> bool:
        return False
