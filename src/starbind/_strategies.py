"""Route callback invocation strategies.

A strategy is called as ``strategy(callable, request, response, route_arguments)``
and returns whatever the route callable returns.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from starlette.requests import Request
    from starlette.responses import Response

    from ._engine import DIContainer


class RequestResponse:
    """Calls ``callable(request, response, route_arguments)``.

    Route arguments are also merged into ``request.path_params``.
    """

    def __call__(
        self,
        callable_: Callable[..., Any],
        request: Request,
        response: Response,
        route_arguments: Mapping[str, Any],
    ) -> Any:
        request.scope["path_params"] = {**request.scope.get("path_params", {}), **route_arguments}

        return callable_(request, response, route_arguments)


class RequestResponseArgs:
    """Calls ``callable(request, response, *route_argument_values)``."""

    def __call__(
        self,
        callable_: Callable[..., Any],
        request: Request,
        response: Response,
        route_arguments: Mapping[str, Any],
    ) -> Any:
        return callable_(request, response, *route_arguments.values())


class CallableStrategy:
    """Calls the route callable through the container invoker.

    `request`, `response` and the route arguments are matched by parameter
    name; any other parameter is resolved from the container.
    """

    def __init__(self, invoker: DIContainer) -> None:
        self._invoker = invoker

    def __call__(
        self,
        callable_: Callable[..., Any],
        request: Request,
        response: Response,
        route_arguments: Mapping[str, Any],
    ) -> Any:
        parameters = {"request": request, "response": response, **route_arguments}

        return self._invoker.call(callable_, parameters)
