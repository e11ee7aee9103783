"""Default error, not-found and not-allowed handlers.

Each handler negotiates the response content type from the request `Accept`
header and returns a new response carrying the non-content headers of the
response it was given.
"""

from __future__ import annotations

import html
import logging
import traceback
from collections.abc import Iterable
from typing import ClassVar

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response


logger = logging.getLogger(__name__)

_RESPONSE_CLASSES: dict[str, type[Response]] = {
    "application/json": JSONResponse,
    "text/html": HTMLResponse,
    "text/plain": PlainTextResponse,
}


class AbstractHandler:
    known_content_types: ClassVar[tuple[str, ...]] = ("application/json", "text/html", "text/plain")
    default_content_type: ClassVar[str] = "text/html"

    def determine_content_type(self, request: Request) -> str:
        """First known media type listed in the Accept header."""
        for item in request.headers.get("accept", "").split(","):
            media_type = item.split(";", 1)[0].strip().lower()
            if media_type in self.known_content_types:
                return media_type
            if media_type.endswith("+json") and "application/json" in self.known_content_types:
                return "application/json"

        return self.default_content_type

    def render(self, response: Response, content_type: str, content: object, status_code: int) -> Response:
        headers = {
            key: value for key, value in response.headers.items() if key not in ("content-type", "content-length")
        }
        return _RESPONSE_CLASSES[content_type](content, status_code=status_code, headers=headers)


def _html_page(title: str, body: str) -> str:
    return (
        "<html><head><meta http-equiv='Content-Type' content='text/html; charset=utf-8'>"
        f"<title>{html.escape(title)}</title>"
        "<style>body{margin:0;padding:30px;font:12px/1.5 Helvetica,Arial,Verdana,sans-serif;}"
        "h1{margin:0;font-size:48px;font-weight:normal;line-height:48px;}</style>"
        f"</head><body><h1>{html.escape(title)}</h1>{body}</body></html>"
    )


class ErrorHandler(AbstractHandler):
    """Application error handler, responds with a 500 status."""

    def __init__(self, display_error_details: bool = False) -> None:
        self.display_error_details = display_error_details

    def __call__(self, request: Request, response: Response, exc: BaseException) -> Response:
        content_type = self.determine_content_type(request)

        if not self.display_error_details:
            logger.error("Application error on %s %s", request.method, request.url.path, exc_info=exc)

        if content_type == "application/json":
            content: object = self._json_content(exc)
        elif content_type == "text/plain":
            content = self._plain_content(exc)
        else:
            content = self._html_content(exc)

        return self.render(response, content_type, content, 500)

    def _details(self, exc: BaseException) -> list[dict[str, object]]:
        details = []
        seen: set[int] = set()
        current: BaseException | None = exc
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            details.append(
                {
                    "type": type(current).__qualname__,
                    "message": str(current),
                    "trace": traceback.format_tb(current.__traceback__),
                }
            )
            current = current.__cause__ or current.__context__
        return details

    def _json_content(self, exc: BaseException) -> dict[str, object]:
        content: dict[str, object] = {"message": "Application Error"}
        if self.display_error_details:
            content["exception"] = self._details(exc)
        return content

    def _plain_content(self, exc: BaseException) -> str:
        if not self.display_error_details:
            return "Application Error"

        lines = ["Application Error"]
        for detail in self._details(exc):
            lines.extend(["", f"Type: {detail['type']}", f"Message: {detail['message']}", "Trace:"])
            lines.extend(line.rstrip() for line in detail["trace"])  # type: ignore[union-attr]
        return "\n".join(lines)

    def _html_content(self, exc: BaseException) -> str:
        if not self.display_error_details:
            return _html_page(
                "Application Error",
                "<p>A website error has occurred. Sorry for the temporary inconvenience.</p>",
            )

        body = "<p>The application could not run because of the following error:</p><h2>Details</h2>"
        for detail in self._details(exc):
            trace = html.escape("".join(detail["trace"]))  # type: ignore[arg-type]
            body += (
                f"<div><strong>Type:</strong> {html.escape(str(detail['type']))}</div>"
                f"<div><strong>Message:</strong> {html.escape(str(detail['message']))}</div>"
                f"<h2>Trace</h2><pre>{trace}</pre>"
            )
        return _html_page("Application Error", body)


class NotFoundHandler(AbstractHandler):
    """Responds with a 404 status."""

    def __call__(self, request: Request, response: Response) -> Response:
        content_type = self.determine_content_type(request)

        if content_type == "application/json":
            content: object = {"message": "Not found"}
        elif content_type == "text/plain":
            content = "Not found"
        else:
            content = _html_page(
                "Page Not Found",
                "<p>The page you are looking for could not be found. "
                "Check the address bar to ensure your URL is spelled correctly.</p>",
            )

        return self.render(response, content_type, content, 404)


class NotAllowedHandler(AbstractHandler):
    """Responds with a 405 status and an Allow header, or 200 for OPTIONS requests."""

    def __call__(self, request: Request, response: Response, methods: Iterable[str]) -> Response:
        allow = ", ".join(methods)

        if request.method == "OPTIONS":
            result = self.render(response, "text/plain", f"Allowed methods: {allow}", 200)
        else:
            content_type = self.determine_content_type(request)
            if content_type == "application/json":
                content: object = {"message": f"Method not allowed. Must be one of: {allow}"}
            elif content_type == "text/plain":
                content = f"Method not allowed. Must be one of: {allow}"
            else:
                content = _html_page(
                    "Method not allowed",
                    f"<p>Method not allowed. Must be one of: <strong>{html.escape(allow)}</strong></p>",
                )
            result = self.render(response, content_type, content, 405)

        result.headers["allow"] = allow
        return result
