"""Request routing: maps (method, path) to one of a closed set of outcomes."""

from enum import Enum

from app.core.config import settings


class RouteOutcome(str, Enum):
    """Everything a request can be routed to"""
    STATIC_PASSTHROUGH = "static_passthrough"
    CHAT_POST = "chat_post"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    NOT_FOUND = "not_found"


def resolve_route(
    method: str,
    path: str,
    api_prefix: str = settings.API_PREFIX,
    chat_endpoint: str = settings.CHAT_ENDPOINT,
) -> RouteOutcome:
    """
    Decide how to handle a request.

    Args:
        method: HTTP method
        path: URL path, without query string
        api_prefix: Paths outside this prefix are static assets
        chat_endpoint: Path of the chat API

    Returns:
        RouteOutcome
    """
    if path == "/" or not path.startswith(api_prefix):
        return RouteOutcome.STATIC_PASSTHROUGH

    if path == chat_endpoint:
        if method.upper() == "POST":
            return RouteOutcome.CHAT_POST
        return RouteOutcome.METHOD_NOT_ALLOWED

    return RouteOutcome.NOT_FOUND
