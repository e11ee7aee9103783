from __future__ import annotations

import importlib
import inspect
import re
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._engine import DIContainer


CALLABLE_PATTERN = re.compile(r"^([^:]+):([A-Za-z_][A-Za-z0-9_]*)$")


class CallableResolver:
    """Resolve route targets to callables.

    Accepts callables as-is, ``"name:method"`` strings (``name`` being a
    container entry or an importable ``module.Class``) and bare names of
    callable entries or classes.
    """

    def __init__(self, container: DIContainer) -> None:
        self._container = container

    def resolve(self, to_resolve: Any) -> Callable[..., Any]:
        if callable(to_resolve) and not inspect.isclass(to_resolve):
            return to_resolve

        if inspect.isclass(to_resolve):
            return self._bind(self._container.make(to_resolve), "__call__", to_resolve)

        if not isinstance(to_resolve, str):
            msg = f"{to_resolve!r} is not resolvable"
            raise RuntimeError(msg)

        match = CALLABLE_PATTERN.match(to_resolve)
        name, method = match.groups() if match else (to_resolve, "__call__")

        if self._container.has(name):
            instance = self._container.get(name)
            if method == "__call__" and callable(instance) and not inspect.isclass(instance):
                return instance
        else:
            instance = self._container.make(self._import(name))

        return self._bind(instance, method, to_resolve)

    def _bind(self, instance: Any, method: str, to_resolve: Any) -> Callable[..., Any]:
        if inspect.isclass(instance):
            instance = self._container.make(instance)

        bound = getattr(instance, method, None)
        if not callable(bound):
            msg = f"{to_resolve!r} is not resolvable"
            raise RuntimeError(msg)

        return bound

    def _import(self, name: str) -> type:
        module_name, _, attr = name.rpartition(".")
        try:
            cls = getattr(importlib.import_module(module_name), attr) if module_name else None
        except (ImportError, AttributeError):
            cls = None

        if not inspect.isclass(cls):
            msg = f"Callable {name} does not exist"
            raise RuntimeError(msg)

        return cls
