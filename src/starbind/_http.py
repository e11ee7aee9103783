"""Server environment and the Starlette request/response objects built from it."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from starlette.requests import Request
from starlette.responses import Response


# A client "Proxy:" header and the outbound proxy setting share this name.
_IGNORED_VARIABLES = frozenset({"HTTP_PROXY"})


class Environment(dict):
    """CGI-style server variables (REQUEST_METHOD, SERVER_NAME, HTTP_*...)."""

    @classmethod
    def mock(cls, user_data: Mapping[str, str] | None = None) -> Environment:
        """Environment for a plain GET / request on localhost, updated with `user_data`."""
        data = {
            "SERVER_PROTOCOL": "HTTP/1.1",
            "REQUEST_METHOD": "GET",
            "SCRIPT_NAME": "",
            "REQUEST_URI": "/",
            "QUERY_STRING": "",
            "SERVER_NAME": "localhost",
            "SERVER_PORT": "80",
            "HTTP_HOST": "localhost",
            "HTTP_ACCEPT": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "HTTP_ACCEPT_LANGUAGE": "en-US,en;q=0.8",
            "HTTP_ACCEPT_CHARSET": "ISO-8859-1,utf-8;q=0.7,*;q=0.3",
            "HTTP_USER_AGENT": "starbind",
            "REMOTE_ADDR": "127.0.0.1",
        }
        data.update(user_data or {})
        return cls(data)


def build_scope(environment: Mapping[str, str], http_version: str = "1.1") -> dict[str, Any]:
    """Translate server variables into an ASGI HTTP connection scope."""
    https = environment.get("HTTPS", "off").lower() not in ("", "off", "0")
    scheme = "https" if https else "http"
    default_port = 443 if https else 80

    uri = environment.get("REQUEST_URI") or "/"
    path, _, query = uri.partition("?")
    query = environment.get("QUERY_STRING") or query

    protocol = environment.get("SERVER_PROTOCOL", "")
    if protocol.startswith("HTTP/"):
        http_version = protocol[len("HTTP/") :]

    headers = []
    for key, value in environment.items():
        if key in _IGNORED_VARIABLES:
            continue
        if key.startswith("HTTP_"):
            name = key[len("HTTP_") :]
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            name = key
        else:
            continue
        headers.append((_encode(name.replace("_", "-").lower()), _encode(value)))

    scope: dict[str, Any] = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.3"},
        "http_version": http_version,
        "method": environment.get("REQUEST_METHOD", "GET").upper(),
        "scheme": scheme,
        "path": unquote(path) or "/",
        "raw_path": _encode(path),
        "query_string": _encode(query),
        "root_path": environment.get("SCRIPT_NAME", ""),
        "headers": headers,
        "server": (environment.get("SERVER_NAME", "localhost"), _port(environment.get("SERVER_PORT"), default_port)),
        "client": None,
        "path_params": {},
    }

    if environment.get("REMOTE_ADDR"):
        scope["client"] = (environment["REMOTE_ADDR"], _port(environment.get("REMOTE_PORT"), 0))

    return scope


def create_request(environment: Mapping[str, str], http_version: str = "1.1") -> Request:
    return Request(build_scope(environment, http_version))


def create_response(content_type: str = "text/html; charset=utf-8") -> Response:
    return Response(status_code=200, headers={"content-type": content_type})


def _encode(value: object) -> bytes:
    """Latin-1 bytes, or the original OS bytes for text latin-1 cannot hold."""
    text = str(value)
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        return text.encode("utf-8", "surrogateescape")


def _port(value: object, default: int) -> int:
    text = str(value or "").strip()
    return int(text) if text.isascii() and text.isdigit() else default
