"""Shared fixtures for the dispatch core tests."""

from http import HTTPStatus
from typing import Any

import pytest

from micro_dispatch import (
    Dispatcher,
    Endpoint,
    HttpMethod,
    MiddlewareEntry,
    Registry,
    Request,
    Response,
    Server,
    ServerConfig,
)


class GreetingHandler:
    """Endpoint handler dispatching on the resolved endpoint id."""

    def handle(self, request: Request) -> Response:
        if request.get_attribute("_id") == "hello":
            return Response(body="Hello World")
        return Response(body=request.body)


class AuthMiddleware:
    """Rejects requests without an authorization header."""

    def process(self, request: Request, handler: Any) -> Response:
        if request.has_header("authorization"):
            return handler.handle(request)
        return Response(status_code=HTTPStatus.FORBIDDEN.value)


class RecordingMiddleware:
    """Appends its label to a shared trace before and after delegating."""

    def __init__(self, label: str, trace: list[str]) -> None:
        self.label = label
        self.trace = trace

    def process(self, request: Request, handler: Any) -> Response:
        self.trace.append(f"{self.label}:in")
        response = handler.handle(request)
        self.trace.append(f"{self.label}:out")
        return response


@pytest.fixture
def config() -> ServerConfig:
    """Default server configuration."""
    return ServerConfig()


@pytest.fixture
def registry(config: ServerConfig) -> Registry:
    """Registry without a bound dispatcher."""
    return Registry(config)


@pytest.fixture
def dispatcher(registry: Registry) -> Dispatcher:
    """Dispatcher bound to the registry fixture."""
    bus = Dispatcher(registry)
    registry.bind(bus)
    return bus


@pytest.fixture
def server() -> Server:
    """Fresh server with default configuration."""
    return Server()


@pytest.fixture
def greeting_handler() -> GreetingHandler:
    """Handler answering hello and echo endpoints."""
    return GreetingHandler()


@pytest.fixture
def hello_endpoint(greeting_handler: GreetingHandler) -> Endpoint:
    """GET /test endpoint returning a greeting."""
    return Endpoint(id="hello", route="/test", method=HttpMethod.GET, handler=greeting_handler)


@pytest.fixture
def echo_endpoint(greeting_handler: GreetingHandler) -> Endpoint:
    """POST /test endpoint echoing the request body."""
    return Endpoint(id="echo", route="/test", method=HttpMethod.POST, handler=greeting_handler)


@pytest.fixture
def auth_entry() -> MiddlewareEntry:
    """Authorization middleware entry."""
    return MiddlewareEntry(
        id="auth",
        name="Middleware instance for testing",
        priority=20,
        instance=AuthMiddleware(),
    )


@pytest.fixture
def trace() -> list[str]:
    """Shared list middleware and handlers append to."""
    return []


@pytest.fixture
def recorder(trace: list[str]):
    """Factory for middleware that records entry and exit in ``trace``."""

    def make(label: str) -> RecordingMiddleware:
        return RecordingMiddleware(label, trace)

    return make
