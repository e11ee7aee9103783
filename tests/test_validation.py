import unittest
from typing import Protocol, runtime_checkable

import pytest

from starbind import DIContainer, autowire


class TestRuntimeProtocolNonConformance(unittest.TestCase):
    cont: DIContainer

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class BadRepo:
        # Missing `get`, does not conform to RepoProtocol
        def other(self) -> str:
            return "nope"

    def setUp(self):
        self.cont = DIContainer()

    def test_resolve_raises_type_error_when_factory_returns_non_conforming_instance(self):
        self.cont.register(self.RepoProtocol, factory=lambda _: self.BadRepo())
        # factory path does not raise at register time, but fails at resolution.
        with pytest.raises(TypeError):
            self.cont.resolve(self.RepoProtocol)


class TestRuntimeProtocolConformance(unittest.TestCase):
    cont: DIContainer

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class GoodRepo:
        def get(self) -> int:
            return 42

    def setUp(self):
        self.cont = DIContainer()

    def test_resolve_succeeds_when_factory_returns_conforming_instance(self):
        self.cont.register(self.RepoProtocol, factory=lambda _: self.GoodRepo())

        repo = self.cont.resolve(self.RepoProtocol)

        assert isinstance(repo, self.GoodRepo)
        assert repo.get() == 42

    def test_register_instance_succeeds_for_conforming_instance(self):
        repo = self.GoodRepo()

        self.cont.register_instance(self.RepoProtocol, repo)
        resolved = self.cont.get(self.RepoProtocol)

        assert resolved is repo

    def test_register_succeeds_for_conforming_class(self):
        self.cont.register(self.RepoProtocol, self.GoodRepo)

        repo = self.cont.get(self.RepoProtocol)

        assert isinstance(repo, self.GoodRepo)
        assert repo.get() == 42

    def test_protocol_token_is_not_autowirable(self):
        assert not self.cont.has(self.RepoProtocol)


class TestRegisterImplTokenConstraints(unittest.TestCase):
    cont: DIContainer

    def setUp(self):
        self.cont = DIContainer()

    def test_register_impl_requires_impl_to_be_subclass_of_concrete_token(self):
        class Base: ...

        class NotDerived: ...

        with pytest.raises(TypeError):
            self.cont.register(Base, impl=NotDerived)  # Not a subclass of Base

    def test_set_autowire_requires_subclass_of_class_token(self):
        class Base: ...

        class NotDerived: ...

        with pytest.raises(TypeError):
            self.cont.set(Base, autowire(NotDerived))

    def test_factory_result_must_be_instance_of_class_token(self):
        class Base: ...

        self.cont.register(Base, factory=lambda _: object())

        with pytest.raises(TypeError):
            self.cont.get(Base)

    def test_register_requires_exactly_one_of_impl_and_factory(self):
        class A: ...

        with pytest.raises(ValueError, match="not both"):
            self.cont.register(A, impl=A, factory=lambda _: A())

        with pytest.raises(ValueError, match="must be provided"):
            self.cont.register(A)

    def test_register_any_impl_with_empty_protocol_succeeds(self):
        class EmptyProto(Protocol): ...

        class AnyClass: ...

        self.cont.register(EmptyProto, impl=AnyClass)

        resolved = self.cont.resolve(EmptyProto)
        assert isinstance(resolved, AnyClass)


class TestRegisterInstanceReplacement(unittest.TestCase):
    cont: DIContainer

    def setUp(self):
        self.cont = DIContainer()

    def test_register_instance_twice_without_replace_raises_key_error(self):
        class A: ...

        a1, a2 = A(), A()

        self.cont.register_instance("a_instance", instance=a1)
        with pytest.raises(KeyError):
            self.cont.register_instance("a_instance", instance=a2)

    def test_register_instance_by_type_twice_with_replace_option_substitutes_instance(self):
        class A: ...

        a1, a2 = A(), A()

        self.cont.register_instance(A, instance=a1)
        self.cont.register_instance(A, instance=a2, replace=True)

        assert self.cont.resolve(A) is a2

    def test_set_always_replaces_values(self):
        self.cont.set("name", "first")
        self.cont.set("name", "second")

        assert self.cont.get("name") == "second"
