from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    ParamSpec,
    Protocol,
    TypeVar,
    cast,
    get_type_hints,
    overload,
)

from ._cache import ArrayCache
from ._definitions import (
    AutowireDefinition,
    FactoryDefinition,
    Lifetime,
    Reference,
    ValueDefinition,
    is_factory,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._cache import DefinitionCache

    T = TypeVar("T")
    # Parameter spec for factories
    P = ParamSpec("P")

    Token = type[T] | str


@dataclass
class Registration:
    factory: Callable[..., object] | None
    impl: type | None
    lifetime: Lifetime
    cached_instance: object | None = None  # cached singleton
    resolved: bool = False
    overrides: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClassMetadata:
    cls: type
    signature: inspect.Signature
    hints: dict[str, Any]


class ResolutionError(RuntimeError):
    pass


class NotFoundError(KeyError):
    """No definition exists for the requested entry and it cannot be autowired."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class InvalidEntryNameError(ValueError):
    pass


class DIContainer:
    """Minimal DI engine.

    - register types, factories or values under a name or a class
    - resolve with constructor injection (autowiring)
    - lifetimes: singleton / transient
    - optional wrapping container used for dependency lookups.
    """

    def __init__(
        self,
        *,
        use_autowiring: bool = True,
        definition_cache: DefinitionCache | None = None,
        wrap_container: Any = None,
        proxies_path: str | None = None,
        compilation_path: str | None = None,
    ) -> None:
        self._registrations: dict[Any, Registration] = {}
        self._lock = threading.RLock()
        self._use_autowiring = use_autowiring
        self._definition_cache = definition_cache if definition_cache is not None else ArrayCache()
        self._wrap_container = wrap_container
        self._proxies_path = proxies_path
        self._compilation_path = compilation_path
        # tokens being built, outermost first
        self._resolving: list[Any] = []

        # The container resolves itself
        for cls in {DIContainer, type(self)}:
            self._store(
                cls,
                Registration(factory=None, impl=None, lifetime=Lifetime.SINGLETON, cached_instance=self, resolved=True),
            )

    @property
    def use_autowiring(self) -> bool:
        return self._use_autowiring

    @property
    def definition_cache(self) -> DefinitionCache:
        return self._definition_cache

    @property
    def wrap_container(self) -> Any:
        return self._wrap_container

    @property
    def proxies_path(self) -> str | None:
        return self._proxies_path

    @property
    def compilation_path(self) -> str | None:
        return self._compilation_path

    @overload
    def register(
        self,
        token: type[T],
        impl: type[T],
        *,
        factory: None = ...,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None: ...

    @overload
    def register(
        self,
        token: type[T],
        impl: None = ...,
        *,
        factory: Callable[P, T],
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None: ...

    @overload
    def register(
        self,
        token: str,
        impl: type | None = ...,
        *,
        factory: Callable[..., Any] | None = ...,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None: ...

    def register(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register a concrete type or a factory for a token.

        Example:
          container.register(IFoo, FooImpl)
          container.register("db", factory=create_db, lifetime=Lifetime.SINGLETON)

        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            msg = "Either `impl` or `factory` must be provided."
            raise ValueError(msg)

        if impl is not None and inspect.isclass(token):
            self._validate_impl(cls=token, impl=impl)

        self._store(token, Registration(factory=factory, impl=impl, lifetime=lifetime))

    def register_instance(
        self,
        token: Token[T],
        instance: object,
        *,
        replace: bool = False,
    ) -> None:
        """Register a pre-built instance (always singleton)."""
        if inspect.isclass(token):
            self._validate_impl(cls=token, impl=type(instance))

        with self._lock:
            if not replace and token in self._registrations:
                msg = f"Token {token!r} is already registered. Pass replace=True to overwrite."
                raise KeyError(msg)
            self._store(
                token,
                Registration(
                    factory=None,
                    impl=None,
                    lifetime=Lifetime.SINGLETON,
                    cached_instance=instance,
                    resolved=True,
                ),
            )

    def set(self, name: Token[T], definition: Any) -> None:
        """Define an entry, replacing any previous definition and its cached instance.

        Plain functions, methods and partials become lazy singleton factories,
        helper definitions (`factory`, `value`, `autowire`, `reference`) are
        honoured, everything else is stored as a value.
        """
        self._check_name(name)

        if isinstance(definition, FactoryDefinition):
            self.register(name, factory=definition.factory, lifetime=definition.lifetime)
        elif isinstance(definition, AutowireDefinition):
            if inspect.isclass(name):
                self._validate_impl(cls=name, impl=definition.cls)
            self._store(
                name,
                Registration(
                    factory=None,
                    impl=definition.cls,
                    lifetime=definition.lifetime,
                    overrides=dict(definition.overrides),
                ),
            )
        elif isinstance(definition, Reference):
            target = definition.name
            self.register(name, factory=lambda container: container.get(target), lifetime=Lifetime.TRANSIENT)
        elif isinstance(definition, ValueDefinition):
            self.register_instance(name, definition.value, replace=True)
        elif is_factory(definition):
            self.register(name, factory=definition, lifetime=Lifetime.SINGLETON)
        else:
            self.register_instance(name, definition, replace=True)

    def add_definitions(self, definitions: Mapping[Any, Any]) -> None:
        for name, definition in definitions.items():
            self.set(name, definition)

    @overload
    def get(self, name: type[T]) -> T: ...

    @overload
    def get(self, name: str) -> Any: ...

    def get(self, name: Token[T]) -> Any:
        """Return the entry for `name`, building it on first access."""
        self._check_name(name)
        return self.resolve(name)

    def has(self, name: Token[T]) -> bool:
        """Whether `name` is defined, or is a class the engine can autowire."""
        self._check_name(name)
        with self._lock:
            if name in self._registrations:
                return True

        return self._use_autowiring and _is_autowirable(name)

    def make(self, name: Token[T], **overrides: Any) -> Any:
        """Build a fresh entry, bypassing the singleton cache.

        Classes passed explicitly are constructed even with autowiring disabled.
        """
        self._check_name(name)
        with self._lock:
            reg = self._registrations.get(name)
            if reg is not None:
                return self._check_instance(name, reg, self._build(reg, **overrides))

            if inspect.isclass(name):
                return self._construct(name, **overrides)

        msg = f"No entry or class found for {name!r}"
        raise NotFoundError(msg)

    def call(self, fn: Callable[..., T], parameters: Mapping[str, Any] | None = None) -> T:
        """Call `fn`, matching `parameters` by name and resolving the rest from the container."""
        return Invoker(self).call(fn, parameters or {})

    @overload
    def resolve(self, token: type[T], **overrides: Any) -> T: ...

    @overload
    def resolve(self, token: str, **overrides: Any) -> object: ...

    def resolve(self, token: Token[T], **overrides: Any) -> object:
        """Resolve the token to an instance.

        - If a registration exists: use it (factory/impl/value).
        - If no registration and token is a concrete class: auto-wire it by type hints
          and keep it as a singleton.
        `overrides` explicitly supply constructor args and bypass the singleton cache.
        """
        with self._lock:
            reg = self._registrations.get(token)

            if reg is None:
                if not (self._use_autowiring and _is_autowirable(token)):
                    msg = f"No entry or class found for {token!r}"
                    raise NotFoundError(msg)

                if overrides:
                    return self._construct(cast("type", token), **overrides)

                logger.debug("Autowiring %s", getattr(token, "__qualname__", token))
                reg = Registration(factory=None, impl=cast("type", token), lifetime=Lifetime.SINGLETON)
                self._registrations[token] = reg

            # Return cached singleton if present
            if reg.lifetime is Lifetime.SINGLETON and reg.resolved and not overrides:
                return reg.cached_instance

            if token in self._resolving:
                cycle = [*self._resolving[self._resolving.index(token) :], token]
                msg = (
                    f"Circular dependency detected while trying to resolve entry {_describe(token)}: "
                    + " -> ".join(_describe(t) for t in cycle)
                )
                raise ResolutionError(msg)

            self._resolving.append(token)
            try:
                instance = self._check_instance(token, reg, self._build(reg, **overrides))
            finally:
                self._resolving.pop()

            if reg.lifetime is Lifetime.SINGLETON and not overrides:
                reg.cached_instance = instance
                reg.resolved = True

            return instance

    def resolve_param(
        self,
        owner: Any,
        name: str,
        p: inspect.Parameter,
        bound: inspect.BoundArguments,
        hints: dict[str, Any],
    ) -> Any:
        """Resolving param.

        Resolution precedence:
        1. explicit override
        2. type-based entry
        3. name-based entry
        4. default
        5. error.
        """
        # Skip var-positional/var-keyword here; filled only by explicit extras
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            return inspect.Signature.empty

        # 0) already explicitly bound
        if name in bound.arguments:
            return bound.arguments[name]

        source = self._delegate()

        # 1) type-based
        ann = hints.get(name, inspect.Signature.empty)
        if ann is not inspect.Signature.empty and (isinstance(ann, str) or inspect.isclass(ann)) and source.has(ann):
            return source.get(ann)

        # 2) name-based
        if source.has(name):
            return source.get(name)

        # 3) default
        if p.default is not inspect.Parameter.empty:
            return p.default

        # 4) error
        ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not inspect.Signature.empty else "no-annotation"
        owner_repr = getattr(owner, "__qualname__", repr(owner))
        msg = (
            f"Cannot satisfy parameter '{name}' of {owner_repr}. "
            f"No override/registration/default found (annotation: {ann_repr})."
        )
        raise ResolutionError(msg)

    def _store(self, token: Any, registration: Registration) -> None:
        with self._lock:
            self._registrations[token] = registration

    def _delegate(self) -> Any:
        return self._wrap_container if self._wrap_container is not None else self

    def _build(self, reg: Registration, **overrides: Any) -> object:
        if reg.factory is not None:
            return _call_factory(reg.factory, self._delegate(), overrides)

        if reg.impl is not None:
            return self._construct(reg.impl, **{**reg.overrides, **overrides})

        return reg.cached_instance

    def _construct(self, cls: type[T], **overrides: Any) -> T:
        return Invoker(self).construct(cls, **overrides)

    def _check_name(self, name: object) -> None:
        if not isinstance(name, str) and not inspect.isclass(name):
            msg = f"The name parameter must be a str or a class, {type(name).__name__} given"
            raise InvalidEntryNameError(msg)

    def _check_instance(self, token: Any, reg: Registration, instance: object) -> object:
        """Factory results registered under a class token must be instances of it."""
        if not inspect.isclass(token) or reg.factory is None:
            return instance

        if _is_protocol(token):
            if _is_runtime_checkable_protocol(token) and not isinstance(instance, token):
                msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {token.__name__}"
                raise TypeError(msg)
        elif not isinstance(instance, token):
            msg = f"Resolved instance {type(instance).__name__} is not an instance of {token.__name__}"
            raise TypeError(msg)

        return instance

    def _validate_impl(self, cls: type, impl: type) -> None:
        """Validate that 'impl' implements 'cls'.

        Normal classes and ABCs require issubclass(impl, cls). Protocols are
        only checked once resolved, and only when runtime-checkable.
        """
        if _is_protocol(cls):
            return

        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)


class Invoker:
    """Calls classes and functions, filling missing arguments from a container."""

    def __init__(self, resolver: DIContainer) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T], **overrides: Any) -> T:
        if cls.__init__ is object.__init__:
            return cls()

        metadata = self._inspect_class(cls)
        return self._invoke(cls, metadata.signature, metadata.hints, overrides, strict=True)

    def call(self, fn: Callable[..., T], parameters: Mapping[str, Any]) -> T:
        return self._invoke(fn, inspect.signature(fn), _get_type_hints(fn), dict(parameters), strict=False)

    def _invoke(
        self,
        target: Callable[..., T],
        sig: inspect.Signature,
        hints: dict[str, Any],
        overrides: dict[str, Any],
        *,
        strict: bool,
    ) -> T:
        params = sig.parameters

        overrides.pop("self", None)  # never allow passing 'self'

        if not strict and not any(p.kind is p.VAR_KEYWORD for p in params.values()):
            # Invoked callables only receive the parameters they declare
            overrides = {k: v for k, v in overrides.items() if k in params}

        kw_overrides, posonly_overrides = self._split_positional_only(overrides, params)

        bound = self._bind_explicit(sig, kw_overrides, target)

        self._inject_positional_only(bound, posonly_overrides)

        self._fill_missing_arguments(target, sig, bound, hints)

        args, kwargs = self._materialize_call(sig, bound)
        return target(*args, **kwargs)

    def _inspect_class(self, cls: type) -> ClassMetadata:
        cache = self._resolver.definition_cache
        key = f"{cls.__module__}.{cls.__qualname__}"

        cached = cache.fetch(key)
        # Local classes may share a qualified name
        if isinstance(cached, ClassMetadata) and cached.cls is cls:
            return cached

        metadata = ClassMetadata(cls=cls, signature=inspect.signature(cls), hints=_get_init_type_hints(cls))
        cache.save(key, metadata)
        return metadata

    def _materialize_call(
        self, sig: inspect.Signature, bound: inspect.BoundArguments
    ) -> tuple[list[Any], dict[str, Any]]:
        params = sig.parameters
        args, kwargs = [], {}

        # positional-only
        for name, p in params.items():
            if p.kind is p.POSITIONAL_ONLY and name in bound.arguments:
                args.append(bound.arguments[name])

        # *args
        for name, p in params.items():
            if p.kind is p.VAR_POSITIONAL:
                args.extend(tuple(bound.arguments.get(name, ())))
                break

        # keywords
        for name, p in params.items():
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY):
                kwargs[name] = bound.arguments[name]

        # **kwargs
        for name, p in params.items():
            if p.kind is p.VAR_KEYWORD:
                kwargs.update(bound.arguments.get(name, {}))
                break

        return args, kwargs

    def _fill_missing_arguments(
        self,
        target: Any,
        sig: inspect.Signature,
        bound: inspect.BoundArguments,
        hints: dict[str, Any],
    ) -> None:
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            if name not in bound.arguments:
                value = self._resolver.resolve_param(target, name, p, bound, hints)
                if value is not inspect.Signature.empty:
                    bound.arguments[name] = value

    def _inject_positional_only(self, bound: inspect.BoundArguments, posonly_overrides: dict[str, Any]) -> None:
        for name, value in posonly_overrides.items():
            bound.arguments[name] = value

    def _split_positional_only(
        self,
        overrides: dict[str, Any],
        params: Mapping[str, inspect.Parameter],
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        pos_only = {name for name, p in params.items() if p.kind is inspect.Parameter.POSITIONAL_ONLY}

        return (
            {k: v for k, v in overrides.items() if k not in pos_only},
            {k: v for k, v in overrides.items() if k in pos_only},
        )

    def _bind_explicit(self, sig: inspect.Signature, kw: dict[str, Any], target: Any) -> inspect.BoundArguments:
        try:
            return sig.bind_partial(**kw)
        except TypeError as e:
            msg = f"Overrides don't match {getattr(target, '__qualname__', target)!r} signature: {e}"
            raise TypeError(msg) from e


def _call_factory(fn: Callable[..., Any], container: Any, overrides: dict[str, Any]) -> Any:
    """Call a zero or one argument factory, passing the container when it takes a positional argument."""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return fn(container, **overrides)

    wants_container = any(
        (p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.name not in overrides)
        or p.kind is p.VAR_POSITIONAL
        for p in params
    )
    if wants_container:
        return fn(container, **overrides)

    return fn(**overrides)


def _describe(token: object) -> str:
    if inspect.isclass(token):
        return token.__qualname__
    return repr(token)


def _is_autowirable(tp: object) -> bool:
    return (
        inspect.isclass(tp)
        and getattr(tp, "__module__", "") != "builtins"
        and not inspect.isabstract(tp)
        and not _is_protocol(tp)
    )


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: Any) -> bool:
        """Detect whether 'tp' is a typing.Protocol class (safe)."""
        return (
            inspect.isclass(tp)
            and bool(getattr(tp, "_is_protocol", False))
            and issubclass(tp, cast("type", Protocol))
        )


def _is_runtime_checkable_protocol(tp: type) -> bool:
    if not _is_protocol(tp):
        return False

    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True


def _get_type_hints(fn: Any) -> dict[str, Any]:
    try:
        return get_type_hints(fn)
    except TypeError:
        return {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %r type hints", exc.name, fn)
        return {}


def _get_init_type_hints(cls: type[T]) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
