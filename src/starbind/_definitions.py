"""Definition helpers.

A definition is the recipe the container uses to produce an entry the first
time it is requested. Plain functions are treated as factories and every other
value is stored as-is; these helpers make the intent explicit where the
default would guess wrong (a callable that must be stored as a value, a class
that must be autowired, an alias).
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class FactoryDefinition:
    factory: Callable[..., Any]
    lifetime: Lifetime = Lifetime.SINGLETON


@dataclass(frozen=True)
class ValueDefinition:
    value: Any


@dataclass(frozen=True)
class AutowireDefinition:
    cls: type
    lifetime: Lifetime = Lifetime.SINGLETON
    overrides: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Reference:
    name: Any


def factory(fn: Callable[..., Any], lifetime: Lifetime = Lifetime.SINGLETON) -> FactoryDefinition:
    """Define an entry produced by calling `fn`."""
    return FactoryDefinition(factory=fn, lifetime=lifetime)


def value(obj: Any) -> ValueDefinition:
    """Define an entry as `obj` itself, even when `obj` is callable."""
    return ValueDefinition(value=obj)


def autowire(cls: type, lifetime: Lifetime = Lifetime.SINGLETON, **overrides: Any) -> AutowireDefinition:
    """Define an entry built from `cls`, with explicit constructor arguments in `overrides`.

    Example:
      container.set("mailer", autowire(Mailer, host="smtp.local"))

    """
    return AutowireDefinition(cls=cls, lifetime=lifetime, overrides=overrides)


def reference(name: Any) -> Reference:
    """Define an entry as an alias of another entry."""
    return Reference(name=name)


def is_factory(candidate: object) -> bool:
    """Whether a bare definition value is to be called rather than stored."""
    return inspect.isfunction(candidate) or inspect.ismethod(candidate) or isinstance(candidate, functools.partial)
