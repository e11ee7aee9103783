from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._engine import DIContainer, InvalidEntryNameError, NotFoundError
from ._services import default_services


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping

    T = TypeVar("T")


class ContainerValueNotFoundError(LookupError):
    pass


class Container(DIContainer):
    """Service locator for Starlette applications.

    An application expects these keys to be defined (see
    `register_default_services`): settings, environment, request, response,
    router, found_handler, error_handler, not_found_handler,
    not_allowed_handler and callable_resolver.

    Entries can also be accessed with subscripts: ``container["router"]``,
    ``container["foo"] = "bar"`` and ``"foo" in container``. Deleting an
    entry is accepted but does nothing, definitions cannot be removed once
    registered.
    """

    def register_default_services(self, user_settings: Mapping[str, Any] | None = None) -> None:
        """Register the default services as shared (singleton) entries."""
        self.add_definitions(default_services(user_settings))

    @overload
    def get(self, name: type[T]) -> T: ...

    @overload
    def get(self, name: str) -> Any: ...

    def get(self, name: Any) -> Any:
        try:
            return super().get(name)
        except (NotFoundError, InvalidEntryNameError) as exc:
            raise ContainerValueNotFoundError(str(exc)) from exc

    def __getitem__(self, name: Any) -> Any:
        return self.get(name)

    def __setitem__(self, name: Any, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: Any) -> bool:
        return self.has(name)

    def __delitem__(self, name: Any) -> None:
        logger.debug("Ignoring removal of %r: container entries cannot be removed", name)
