"""Capabilities the dispatch core consumes from its collaborators."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, Self, runtime_checkable


@runtime_checkable
class ServerRequest(Protocol):
    """Request abstraction with immutable attribute attachment."""

    @property
    def method(self) -> str:
        """HTTP method of the request."""
        ...

    @property
    def path(self) -> str:
        """Path component of the request URI."""
        ...

    def with_attribute(self, name: str, value: Any) -> Self:
        """Return a copy of the request carrying an extra attribute."""
        ...


@runtime_checkable
class RequestHandler(Protocol):
    """Anything that turns a request into a response."""

    def handle(self, request: Any) -> Any:
        """Handle ``request`` and return a response."""
        ...


@runtime_checkable
class Middleware(Protocol):
    """A pipeline stage that may delegate to the next handler."""

    def process(self, request: Any, handler: RequestHandler) -> Any:
        """Process ``request``, optionally delegating to ``handler``."""
        ...


@dataclass(frozen=True, slots=True)
class CallableHandler:
    """Adapts ``func(request) -> response`` to :class:`RequestHandler`."""

    func: Callable[[Any], Any]

    def handle(self, request: Any) -> Any:
        return self.func(request)


@dataclass(frozen=True, slots=True)
class CallableMiddleware:
    """Adapts ``func(request, handler) -> response`` to :class:`Middleware`."""

    func: Callable[[Any, RequestHandler], Any]

    def process(self, request: Any, handler: RequestHandler) -> Any:
        return self.func(request, handler)
