from starlette.requests import Request

from starbind import ContainerBuilder, Environment, build_scope, create_request, create_response


def test_mock_environment_defaults_and_overrides():
    environment = Environment.mock({"REQUEST_METHOD": "POST"})

    assert environment["REQUEST_METHOD"] == "POST"
    assert environment["SERVER_NAME"] == "localhost"
    assert isinstance(environment, dict)


def test_build_scope_from_server_variables():
    environment = Environment.mock(
        {
            "REQUEST_METHOD": "put",
            "REQUEST_URI": "/users/a%20b?page=2",
            "QUERY_STRING": "",
            "HTTPS": "on",
            "SERVER_PORT": "",
            "SERVER_PROTOCOL": "HTTP/2",
            "CONTENT_TYPE": "application/json",
            "HTTP_X_REQUEST_ID": "abc",
            "SCRIPT_NAME": "/app",
            "REMOTE_PORT": "5000",
        }
    )

    scope = build_scope(environment)

    assert scope["type"] == "http"
    assert scope["method"] == "PUT"
    assert scope["scheme"] == "https"
    assert scope["path"] == "/users/a b"
    assert scope["raw_path"] == b"/users/a%20b"
    assert scope["query_string"] == b"page=2"
    assert scope["http_version"] == "2"
    assert scope["root_path"] == "/app"
    assert scope["server"] == ("localhost", 443)
    assert scope["client"] == ("127.0.0.1", 5000)
    assert (b"content-type", b"application/json") in scope["headers"]
    assert (b"x-request-id", b"abc") in scope["headers"]


def test_build_scope_uses_given_http_version_without_protocol():
    scope = build_scope({}, "1.0")

    assert scope["http_version"] == "1.0"
    assert scope["method"] == "GET"
    assert scope["path"] == "/"
    assert scope["server"] == ("localhost", 80)
    assert scope["client"] is None


def test_create_request():
    request = create_request(Environment.mock({"REQUEST_URI": "/search?q=di", "HTTP_HOST": "example.org"}))

    assert request.method == "GET"
    assert request.url.path == "/search"
    assert request.query_params["q"] == "di"
    assert request.headers["host"] == "example.org"


def test_create_response():
    response = create_response("application/xml")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/xml"
    assert response.body == b""


def test_build_scope_keeps_non_latin1_values_as_os_bytes():
    scope = build_scope(Environment.mock({"HTTP_X_NAME": "price €", "REQUEST_URI": "/café/€?q=€"}))

    assert (b"x-name", "price €".encode("utf-8")) in scope["headers"]
    assert scope["path"] == "/café/€"
    assert scope["raw_path"] == "/café/€".encode("utf-8")
    assert scope["query_string"] == "q=€".encode("utf-8")


def test_build_scope_falls_back_to_default_ports():
    scope = build_scope(Environment.mock({"SERVER_PORT": "http", "REMOTE_PORT": "-1"}))
    assert scope["server"] == ("localhost", 80)
    assert scope["client"] == ("127.0.0.1", 0)

    scope = build_scope(Environment.mock({"SERVER_PORT": "²", "HTTPS": "on"}))
    assert scope["server"] == ("localhost", 443)


def test_build_scope_drops_proxy_variable():
    scope = build_scope(Environment.mock({"HTTP_PROXY": "http://evil:8080"}))

    assert all(name != b"proxy" for name, _ in scope["headers"])


def test_request_service_tolerates_process_environment(monkeypatch):
    monkeypatch.setenv("HTTP_X_NAME", "price €")
    monkeypatch.setenv("SERVER_PORT", "http")
    monkeypatch.setenv("HTTP_PROXY", "http://evil:8080")

    request = ContainerBuilder.build().get("request")

    assert isinstance(request, Request)
    assert request.headers["x-name"] == "price €".encode("utf-8").decode("latin-1")
    assert "proxy" not in request.headers
    assert request.scope["server"][1] == 80
