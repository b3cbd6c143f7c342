"""Embeddable micro-dispatch core.

Route requests to registered endpoints, run them through a priority-ordered
middleware chain, and observe or rewrite the flow through an event bus.

Main components:
    Server: Composition root with a single ``handle(request)`` entry point
    Registry: Endpoints, middleware entries and listeners
    Dispatcher: Priority-ordered event bus with propagation stopping
    Router: Resolves the endpoint for a request path and method
    Stack: Single-use middleware chain around an endpoint handler
    ServerConfig: Server configuration

Exceptions:
    DispatchError: Base exception for dispatch core errors
    ValidationError: Invalid endpoint, middleware or listener record
    NotFoundError: No route matches the request path (404)
    MethodNotAllowedError: Route has no endpoint for the method (405)
    RegistryLookupError: Exact-key registry lookup missed
    InternalConsistencyError: Registration bug detected at dispatch time

Example:
    .. code-block:: python

        from micro_dispatch import Request, Response, Server

        server = Server()

        @server.middleware(priority=20)
        def require_auth(request, handler):
            if not request.has_header("authorization"):
                return Response(status_code=403)
            return handler.handle(request)

        @server.route("/echo", method="POST")
        def echo(request):
            return Response(body=request.body)

        @server.on("server/request", priority=10)
        def authorize(event):
            event.data.request = event.data.request.with_header("authorization", "yes")

        response = server.handle(Request(method="POST", path="/echo", body="Hello"))

Note:
    Records are validated when registered. Routing errors propagate out of
    ``Server.handle``; translating them into responses is up to the host.
"""

from .config import ServerConfig
from .constants import SERVER_REQUEST, SERVER_RESPONSE
from .dispatcher import Dispatcher
from .exceptions import (
    DispatchError,
    InternalConsistencyError,
    MethodNotAllowedError,
    NotFoundError,
    RegistryLookupError,
    RoutingError,
    ValidationError,
)
from .messages import Request, Response
from .models import (
    Endpoint,
    Event,
    Exchange,
    HttpMethod,
    Listener,
    MiddlewareEntry,
    RegistryChange,
)
from .protocols import (
    CallableHandler,
    CallableMiddleware,
    Middleware,
    RequestHandler,
    ServerRequest,
)
from .registry import Registry
from .router import Router
from .server import Server
from .stack import Stack
from .version import __version__

__all__: list[str] = [
    "SERVER_REQUEST",
    "SERVER_RESPONSE",
    "CallableHandler",
    "CallableMiddleware",
    "DispatchError",
    "Dispatcher",
    "Endpoint",
    "Event",
    "Exchange",
    "HttpMethod",
    "InternalConsistencyError",
    "Listener",
    "MethodNotAllowedError",
    "Middleware",
    "MiddlewareEntry",
    "NotFoundError",
    "Registry",
    "RegistryChange",
    "RegistryLookupError",
    "Request",
    "RequestHandler",
    "Response",
    "Router",
    "RoutingError",
    "Server",
    "ServerConfig",
    "ServerRequest",
    "Stack",
    "ValidationError",
    "__version__",
]
