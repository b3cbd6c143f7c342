"""Composition root wiring the registry, event bus and router together."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ._utils import handler_name
from .config import ServerConfig
from .constants import DEFAULT_PRIORITY, SERVER_REQUEST, SERVER_RESPONSE
from .dispatcher import Dispatcher
from .exceptions import InternalConsistencyError, ValidationError
from .models import BaseRecord, Endpoint, Event, Exchange, HttpMethod, Listener, MiddlewareEntry
from .protocols import CallableHandler, CallableMiddleware, Middleware, RequestHandler, ServerRequest
from .registry import Registry
from .router import Router

logger: logging.Logger = logging.getLogger(__name__)
"""Logger for the micro_dispatch.server module."""

_T = TypeVar("_T")


class Server:
    """Entry point that wraps routing with request and response events.

    ``handle`` dispatches ``server/request`` with an :class:`Exchange`, routes
    the possibly replaced request, stores the response on the exchange and
    dispatches ``server/response`` before returning the possibly replaced
    response. Routing errors propagate to the caller, who turns them into a
    response.

    Example:
        .. code-block:: python

            server = Server()

            @server.route("/hello/(?P<name>[^/]+)")
            def hello(request: Request) -> Response:
                return Response(body=f"Hello {request.get_attribute('name')}")

            server.handle(Request(path="/hello/world")).body  # "Hello world"
    """

    __slots__: tuple[str, ...] = ("_config", "_dispatcher", "_registry", "_router")

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        registry: Registry | None = None,
        dispatcher: Dispatcher | None = None,
        router: Router | None = None,
    ) -> None:
        """Build the server and any collaborators not passed in.

        Args:
            config: Server configuration; defaults are used when omitted.
            registry: Registry to use instead of a new one.
            dispatcher: Event bus to use instead of a new one.
            router: Router to use instead of a new one.
        """
        self._config: ServerConfig = config or ServerConfig()
        self._registry: Registry = registry or Registry(self._config)
        self._dispatcher: Dispatcher = dispatcher or Dispatcher(self._registry, config=self._config)
        self._router: Router = router or Router(self._registry, config=self._config)
        self._registry.bind(self._dispatcher)

    @property
    def config(self) -> ServerConfig:
        """Server configuration."""
        return self._config

    @property
    def registry(self) -> Registry:
        """Registry of endpoints, middleware and listeners."""
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        """Event bus."""
        return self._dispatcher

    @property
    def router(self) -> Router:
        """Request router."""
        return self._router

    def handle(self, request: ServerRequest) -> Any:
        """Handle ``request`` and return the response.

        Raises:
            NotFoundError: If no route matches the request path.
            MethodNotAllowedError: If the route has no endpoint for the method.
        """
        logger.debug("Handling %s %s", request.method, request.path)
        exchange = self._dispatch(SERVER_REQUEST, Exchange(request=request))
        exchange.response = self._router.handle(exchange.request)
        exchange = self._dispatch(SERVER_RESPONSE, exchange)
        return exchange.response

    def _dispatch(self, event_type: str, exchange: Exchange) -> Exchange:
        data = self._dispatcher.dispatch(Event(event_type, exchange)).data
        if not isinstance(data, Exchange):
            msg = f"Listeners of {event_type} replaced the Exchange with {type(data).__name__}"
            raise InternalConsistencyError(msg)
        return data

    def route(
        self,
        route: str,
        method: str = HttpMethod.GET,
        *,
        id: str | None = None,  # noqa: A002
        name: str | None = None,
    ) -> Callable[[_T], _T]:
        """Register the decorated handler for a route and method.

        The decorated object is either a request handler or a plain function
        taking the request.

        Args:
            route: Regular-expression route pattern.
            method: HTTP method.
            id: Endpoint id; defaults to the handler name.
            name: Optional display name.

        Returns:
            Decorator that registers the handler and returns it unchanged.

        Raises:
            ValidationError: If the record is invalid or conflicts with a
                registered endpoint.
        """

        def decorator(func: _T) -> _T:
            handler = func if isinstance(func, RequestHandler) else CallableHandler(func)  # type: ignore[arg-type]
            endpoint = Endpoint.create(
                id=id or handler_name(func),
                route=route,
                method=method,
                handler=handler,
                name=name,
            )
            _require_added(self._registry.add_endpoint(endpoint), endpoint)
            return func

        return decorator

    def middleware(
        self,
        id: str | None = None,  # noqa: A002
        *,
        priority: int = DEFAULT_PRIORITY,
    ) -> Callable[[_T], _T]:
        """Register the decorated middleware.

        The decorated object is either a middleware or a plain function
        taking ``(request, handler)``.

        Args:
            id: Middleware id; defaults to the middleware name.
            priority: Position in the chain, lower runs earlier.

        Returns:
            Decorator that registers the middleware and returns it unchanged.

        Raises:
            ValidationError: If the entry is invalid or its id is taken.
        """

        def decorator(func: _T) -> _T:
            instance = func if isinstance(func, Middleware) else CallableMiddleware(func)  # type: ignore[arg-type]
            entry = MiddlewareEntry.create(
                id=id or handler_name(func),
                priority=priority,
                instance=instance,
            )
            _require_added(self._registry.add_middleware(entry), entry)
            return func

        return decorator

    def on(
        self,
        event_type: str,
        *,
        id: str | None = None,  # noqa: A002
        priority: int = DEFAULT_PRIORITY,
    ) -> Callable[[_T], _T]:
        """Register the decorated callback as a listener for an event type.

        Args:
            event_type: Event tag to listen for.
            id: Listener id; defaults to the callback name.
            priority: Position among the type's listeners, lower runs earlier.

        Returns:
            Decorator that registers the callback and returns it unchanged.

        Raises:
            ValidationError: If the listener is invalid or its id is taken
                for the event type.
        """

        def decorator(func: _T) -> _T:
            listener = Listener.create(
                id=id or handler_name(func),
                type=event_type,
                priority=priority,
                callback=func,
            )
            _require_added(self._registry.add_listener(listener), listener)
            return func

        return decorator


def _require_added(added: bool, record: BaseRecord) -> None:  # noqa: FBT001
    if not added:
        msg = f"{type(record).__name__} {record.id!r} conflicts with a registered record"
        raise ValidationError(msg, fields=("id",))
