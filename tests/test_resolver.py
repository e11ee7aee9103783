import unittest

import pytest

from starbind import CallableResolver, Container


class Controller:
    def __init__(self, prefix: str = "user"):
        self.prefix = prefix

    def show(self, user_id):
        return f"{self.prefix}:{user_id}"

    def __call__(self):
        return "invoked"


class TestCallableResolver(unittest.TestCase):
    def setUp(self):
        self.cont = Container()
        self.resolver = CallableResolver(self.cont)

    def test_callable_passes_through(self):
        def callback(): ...

        assert self.resolver.resolve(callback) is callback

    def test_container_entry_with_method(self):
        self.cont.set("controller", Controller(prefix="member"))

        assert self.resolver.resolve("controller:show")(3) == "member:3"

    def test_importable_class_with_method(self):
        method = self.resolver.resolve(f"{__name__}.Controller:show")

        assert method(5) == "user:5"

    def test_bare_name_of_callable_entry(self):
        def handler():
            return "handled"

        self.cont.set("handler", lambda: handler)

        assert self.resolver.resolve("handler") is handler

    def test_bare_importable_class_is_invoked(self):
        assert self.resolver.resolve(f"{__name__}.Controller")() == "invoked"

    def test_class_object(self):
        assert self.resolver.resolve(Controller)() == "invoked"

    def test_class_entry_is_instantiated(self):
        self.cont.set("controller", Controller)

        assert self.resolver.resolve("controller:show")(1) == "user:1"

    def test_unknown_class_raises(self):
        with pytest.raises(RuntimeError, match="does not exist"):
            self.resolver.resolve("missing.module.Controller:show")

    def test_unknown_method_raises(self):
        self.cont.set("controller", Controller())

        with pytest.raises(RuntimeError, match="is not resolvable"):
            self.resolver.resolve("controller:missing")

    def test_non_string_raises(self):
        with pytest.raises(RuntimeError, match="is not resolvable"):
            self.resolver.resolve(42)
