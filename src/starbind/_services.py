"""Default services a Starlette application resolves from its container.

Every service is registered as a lazy singleton:

 - settings: a dict of application settings
 - environment: an `Environment` of server variables
 - request: a `starlette.requests.Request`
 - response: a `starlette.responses.Response`
 - router: a `starlette.routing.Router`
 - found_handler: the route invocation strategy,
   ``strategy(callable, request, response, route_arguments)``
 - error_handler: ``handler(request, response, exception)``
 - not_found_handler: ``handler(request, response)``
 - not_allowed_handler: ``handler(request, response, allowed_methods)``
 - callable_resolver: a `CallableResolver`
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from starlette.routing import Router

from ._handlers import ErrorHandler, NotAllowedHandler, NotFoundHandler
from ._http import Environment, create_request, create_response
from ._resolver import CallableResolver
from ._strategies import RequestResponse


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._engine import DIContainer


DEFAULT_SETTINGS: dict[str, Any] = {
    "http_version": "1.1",
    "display_error_details": False,
    "redirect_slashes": True,
    "default_content_type": "text/html; charset=utf-8",
}


def default_services(user_settings: Mapping[str, Any] | None = None) -> dict[str, Callable[..., Any]]:
    """Factories for the default services, with `user_settings` merged over `DEFAULT_SETTINGS`."""
    settings = {**DEFAULT_SETTINGS, **(user_settings or {})}

    def settings_factory() -> dict[str, Any]:
        return dict(settings)

    def environment_factory() -> Environment:
        return Environment(os.environ)

    def request_factory(container: DIContainer) -> Any:
        return create_request(container.get("environment"), container.get("settings")["http_version"])

    def response_factory(container: DIContainer) -> Any:
        return create_response(container.get("settings")["default_content_type"])

    def router_factory(container: DIContainer) -> Router:
        return Router(redirect_slashes=container.get("settings")["redirect_slashes"])

    def found_handler_factory() -> RequestResponse:
        return RequestResponse()

    def error_handler_factory(container: DIContainer) -> ErrorHandler:
        return ErrorHandler(container.get("settings")["display_error_details"])

    def not_found_handler_factory() -> NotFoundHandler:
        return NotFoundHandler()

    def not_allowed_handler_factory() -> NotAllowedHandler:
        return NotAllowedHandler()

    def callable_resolver_factory(container: DIContainer) -> CallableResolver:
        return CallableResolver(container)

    return {
        "settings": settings_factory,
        "environment": environment_factory,
        "request": request_factory,
        "response": response_factory,
        "router": router_factory,
        "found_handler": found_handler_factory,
        "error_handler": error_handler_factory,
        "not_found_handler": not_found_handler_factory,
        "not_allowed_handler": not_allowed_handler_factory,
        "callable_resolver": callable_resolver_factory,
    }
