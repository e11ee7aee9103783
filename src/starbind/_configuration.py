from __future__ import annotations

import importlib
import inspect
import os
from collections.abc import Iterable, Mapping
from typing import Any

from ._container import Container
from ._engine import DIContainer


class ConfigurationError(ValueError):
    pass


class Configuration:
    """Container builder configuration.

    Each option is validated by its setter and fails fast with a
    `ConfigurationError`. Construction applies every recognized option
    with a non-None value and ignores unknown keys.
    """

    OPTIONS = (
        "container_class",
        "use_autowiring",
        "wrap_container",
        "proxies_path",
        "compilation_path",
        "definitions",
        "definitions_cache",
    )

    def __init__(self, configurations: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None) -> None:
        self._container_class: type[DIContainer] = Container
        self._use_autowiring = True
        self._wrap_container: Any = None
        self._proxies_path: str | None = None
        self._compilation_path: str | None = None
        self._definitions: list[Mapping[Any, Any] | str] = []
        self._definitions_cache: Any = None

        if configurations is None:
            configurations = {}

        if not isinstance(configurations, Mapping):
            if isinstance(configurations, (str, bytes)):
                msg = "Configurations must be a mapping"
                raise ConfigurationError(msg)
            try:
                configurations = dict(configurations)
            except (TypeError, ValueError) as exc:
                msg = "Configurations must be a mapping"
                raise ConfigurationError(msg) from exc

        for option in self.OPTIONS:
            if configurations.get(option) is not None:
                setattr(self, option, configurations[option])

    @property
    def container_class(self) -> type[DIContainer]:
        return self._container_class

    @container_class.setter
    def container_class(self, container_class: type[DIContainer] | str) -> None:
        if isinstance(container_class, str):
            container_class = _import_class(container_class)

        if not inspect.isclass(container_class) or not issubclass(container_class, DIContainer):
            msg = f"class {container_class!r} must extend {DIContainer.__module__}.{DIContainer.__qualname__}"
            raise ConfigurationError(msg)

        self._container_class = container_class

    @property
    def use_autowiring(self) -> bool:
        return self._use_autowiring

    @use_autowiring.setter
    def use_autowiring(self, use_autowiring: bool) -> None:
        if not isinstance(use_autowiring, bool):
            msg = f"use_autowiring must be a bool, {type(use_autowiring).__name__} given"
            raise ConfigurationError(msg)

        self._use_autowiring = use_autowiring

    @property
    def wrap_container(self) -> Any:
        return self._wrap_container

    @wrap_container.setter
    def wrap_container(self, wrap_container: Any) -> None:
        if not _has_methods(wrap_container, "get", "has"):
            msg = f"Wrapping container must provide get() and has(), {type(wrap_container).__name__} given"
            raise ConfigurationError(msg)

        self._wrap_container = wrap_container

    @property
    def proxies_path(self) -> str | None:
        return self._proxies_path

    @proxies_path.setter
    def proxies_path(self, proxies_path: str | os.PathLike[str]) -> None:
        self._proxies_path = _writable_directory(proxies_path)

    @property
    def compilation_path(self) -> str | None:
        return self._compilation_path

    @compilation_path.setter
    def compilation_path(self, compilation_path: str | os.PathLike[str]) -> None:
        self._compilation_path = _writable_directory(compilation_path)

    @property
    def definitions(self) -> list[Mapping[Any, Any] | str]:
        return list(self._definitions)

    @definitions.setter
    def definitions(self, definitions: Any) -> None:
        if isinstance(definitions, (str, os.PathLike, Mapping)):
            definitions = [definitions]

        if not isinstance(definitions, Iterable):
            msg = f"Definitions must be a path, a mapping or an iterable of them. {type(definitions).__name__} given"
            raise ConfigurationError(msg)

        sources: list[Mapping[Any, Any] | str] = []
        for definition in definitions:
            if isinstance(definition, os.PathLike):
                definition = os.fspath(definition)
            if not isinstance(definition, (Mapping, str)):
                msg = f"A definition must be a mapping or a file or directory path. {type(definition).__name__} given"
                raise ConfigurationError(msg)
            sources.append(definition)

        self._definitions = sources

    @property
    def definitions_cache(self) -> Any:
        return self._definitions_cache

    @definitions_cache.setter
    def definitions_cache(self, definitions_cache: Any) -> None:
        if not _has_methods(definitions_cache, "fetch", "save"):
            msg = f"Definitions cache must provide fetch() and save(), {type(definitions_cache).__name__} given"
            raise ConfigurationError(msg)

        self._definitions_cache = definitions_cache


def _writable_directory(path: str | bytes | os.PathLike) -> str:
    try:
        path = os.fsdecode(path)
    except TypeError as exc:
        msg = f"Directory path must be a str, bytes or os.PathLike, {type(path).__name__} given"
        raise ConfigurationError(msg) from exc

    if not os.path.isdir(path) or not os.access(path, os.W_OK):
        msg = f"{path} directory does not exist or is write protected"
        raise ConfigurationError(msg)

    return path


def _has_methods(obj: object, *names: str) -> bool:
    return all(callable(getattr(obj, name, None)) for name in names)


def _import_class(path: str) -> Any:
    module_name, sep, attr = path.replace(":", ".").rpartition(".")
    if not sep:
        msg = f"class {path!r} must be given as 'module.Class'"
        raise ConfigurationError(msg)

    try:
        return getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        msg = f"class {path!r} does not exist"
        raise ConfigurationError(msg) from exc
