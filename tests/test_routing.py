import pytest

from app.api.routing import RouteOutcome, resolve_route


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("GET", "/", RouteOutcome.STATIC_PASSTHROUGH),
        ("GET", "/index.html", RouteOutcome.STATIC_PASSTHROUGH),
        ("POST", "/chat.js", RouteOutcome.STATIC_PASSTHROUGH),
        ("GET", "/api", RouteOutcome.STATIC_PASSTHROUGH),
        ("POST", "/api/chat", RouteOutcome.CHAT_POST),
        ("post", "/api/chat", RouteOutcome.CHAT_POST),
        ("GET", "/api/chat", RouteOutcome.METHOD_NOT_ALLOWED),
        ("PUT", "/api/chat", RouteOutcome.METHOD_NOT_ALLOWED),
        ("POST", "/api/chat/", RouteOutcome.NOT_FOUND),
        ("GET", "/api/models", RouteOutcome.NOT_FOUND),
    ],
)
def test_resolve_route(method, path, expected):
    assert resolve_route(method, path) is expected


def test_custom_prefix_and_endpoint():
    assert resolve_route("POST", "/v1/talk", api_prefix="/v1/", chat_endpoint="/v1/talk") is RouteOutcome.CHAT_POST
    assert resolve_route("POST", "/api/chat", api_prefix="/v1/", chat_endpoint="/v1/talk") is (
        RouteOutcome.STATIC_PASSTHROUGH
    )
