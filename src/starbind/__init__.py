"""Dependency injection container for Starlette applications.

This package wires a lightweight dependency injection engine to the services
a Starlette-style application looks up from its container (settings, request,
response, router, handlers...).

Exports:
- `ContainerBuilder`: builds a configured `Container` from settings and definitions.
- `Container`: service locator with the default application services and
  subscript access.
- `Configuration`: validated engine options (autowiring, paths, definition sources).
- `DIContainer`: the underlying engine, with type/factory registration and autowiring.
- `factory`, `value`, `autowire`, `reference`: explicit definition helpers.
"""

from ._builder import ContainerBuilder, load_definitions
from ._cache import ArrayCache, DefinitionCache, VoidCache
from ._configuration import Configuration, ConfigurationError
from ._container import Container, ContainerValueNotFoundError
from ._definitions import Lifetime, autowire, factory, reference, value
from ._engine import DIContainer, InvalidEntryNameError, NotFoundError, ResolutionError
from ._handlers import ErrorHandler, NotAllowedHandler, NotFoundHandler
from ._http import Environment, build_scope, create_request, create_response
from ._resolver import CallableResolver
from ._services import DEFAULT_SETTINGS, default_services
from ._strategies import CallableStrategy, RequestResponse, RequestResponseArgs


__all__ = [
    "DEFAULT_SETTINGS",
    "ArrayCache",
    "CallableResolver",
    "CallableStrategy",
    "Configuration",
    "ConfigurationError",
    "Container",
    "ContainerBuilder",
    "ContainerValueNotFoundError",
    "DIContainer",
    "DefinitionCache",
    "Environment",
    "ErrorHandler",
    "InvalidEntryNameError",
    "Lifetime",
    "NotAllowedHandler",
    "NotFoundError",
    "NotFoundHandler",
    "RequestResponse",
    "RequestResponseArgs",
    "ResolutionError",
    "VoidCache",
    "autowire",
    "build_scope",
    "create_request",
    "create_response",
    "default_services",
    "factory",
    "load_definitions",
    "reference",
    "value",
]
