"""Registry of endpoints, middleware entries and event listeners."""

from __future__ import annotations

import logging
from operator import attrgetter
from threading import RLock
from typing import TYPE_CHECKING, TypeVar

from .config import ServerConfig
from .constants import (
    REGISTRY_ADD_ENDPOINT,
    REGISTRY_ADD_LISTENER,
    REGISTRY_ADD_MIDDLEWARE,
    REGISTRY_REMOVE_ENDPOINT,
    REGISTRY_REMOVE_LISTENER,
    REGISTRY_REMOVE_MIDDLEWARE,
)
from .exceptions import InternalConsistencyError, RegistryLookupError
from .models import BaseRecord, Endpoint, Event, HttpMethod, Listener, MiddlewareEntry, RegistryChange

if TYPE_CHECKING:
    from .dispatcher import Dispatcher

logger: logging.Logger = logging.getLogger(__name__)
"""Logger for the micro_dispatch.registry module."""

_RecordT = TypeVar("_RecordT", bound=BaseRecord)
_by_priority = attrgetter("priority")


def _method_key(method: str) -> str:
    return method.upper()


class Registry:
    """Single source of truth for registered endpoints, middleware and listeners.

    Every call is atomic with respect to itself. Middleware and listeners are
    ordered by priority ascending with registration order as the tie-break.
    Exact-key ``get_*`` lookups raise :class:`RegistryLookupError` on a miss.

    When bound to a dispatcher, ``add_*`` and ``remove_*`` dispatch
    ``registry/*`` events carrying a :class:`RegistryChange`. Listeners of an
    add event may replace the record before it is stored.
    """

    __slots__: tuple[str, ...] = (
        "_config",
        "_dispatcher",
        "_endpoints",
        "_listeners",
        "_lock",
        "_middleware",
        "_middleware_order",
        "_type_listeners",
    )

    def __init__(self, config: ServerConfig | None = None) -> None:
        """Initialize an empty registry.

        Args:
            config: Server configuration; defaults are used when omitted.
        """
        self._config: ServerConfig = config or ServerConfig()
        self._dispatcher: Dispatcher | None = None
        self._lock = RLock()
        self._endpoints: dict[str, dict[str, Endpoint]] = {}
        self._middleware: dict[str, MiddlewareEntry] = {}
        self._middleware_order: list[MiddlewareEntry] | None = None
        self._listeners: dict[str, dict[str, Listener]] = {}
        self._type_listeners: dict[str, list[Listener]] = {}

    @property
    def config(self) -> ServerConfig:
        """Configuration this registry was built with."""
        return self._config

    def bind(self, dispatcher: Dispatcher) -> None:
        """Dispatch registry lifecycle events through ``dispatcher``."""
        self._dispatcher = dispatcher

    # Endpoints

    def add_endpoint(self, endpoint: Endpoint) -> bool:
        """Add an endpoint unless its id or (route, method) pair is taken.

        Args:
            endpoint: Endpoint to register.

        Returns:
            ``True`` if the endpoint was added, ``False`` if an endpoint with
            the same id, or the same route and method, already exists.

        Raises:
            ValidationError: If the endpoint is invalid.
        """
        endpoint = endpoint.check()
        with self._lock:
            if self._endpoint_conflict(endpoint):
                return False

        endpoint = self._announce(REGISTRY_ADD_ENDPOINT, endpoint)

        with self._lock:
            if self._endpoint_conflict(endpoint):
                return False
            self._endpoints.setdefault(endpoint.route, {})[endpoint.method] = endpoint

        logger.debug("Added endpoint %s (%s %s)", endpoint.id, endpoint.method, endpoint.route)
        return True

    def _endpoint_conflict(self, endpoint: Endpoint) -> bool:
        if endpoint.method in self._endpoints.get(endpoint.route, {}):
            logger.warning("Endpoint %s %s already registered", endpoint.method, endpoint.route)
            return True
        for methods in self._endpoints.values():
            if any(other.id == endpoint.id for other in methods.values()):
                logger.warning("Endpoint id %s already registered", endpoint.id)
                return True
        return False

    def remove_endpoint(self, route: str, method: str = HttpMethod.GET) -> Endpoint | None:
        """Remove an endpoint.

        Returns:
            The removed endpoint, or ``None`` if nothing matched.
        """
        key = _method_key(method)
        with self._lock:
            methods = self._endpoints.get(route)
            if methods is None or key not in methods:
                return None
            endpoint = methods.pop(key)
            if not methods:
                del self._endpoints[route]

        logger.debug("Removed endpoint %s (%s %s)", endpoint.id, endpoint.method, endpoint.route)
        return self._announce(REGISTRY_REMOVE_ENDPOINT, endpoint)

    def has_endpoint(self, route: str, method: str = HttpMethod.GET) -> bool:
        """True if an endpoint is registered for the route and method."""
        with self._lock:
            return _method_key(method) in self._endpoints.get(route, {})

    def get_endpoint(self, route: str, method: str = HttpMethod.GET) -> Endpoint:
        """Return the endpoint registered for the route and method.

        Raises:
            RegistryLookupError: If no such endpoint exists.
        """
        with self._lock:
            endpoint = self._endpoints.get(route, {}).get(_method_key(method))
        if endpoint is None:
            msg = f"No endpoint found for {_method_key(method)} {route}"
            raise RegistryLookupError(msg)
        return endpoint

    def get_endpoints(self) -> dict[str, dict[str, Endpoint]]:
        """Return a snapshot of all endpoints keyed by route, then method.

        Routes are in registration order. Look endpoints up by method key
        rather than relying on the order within a route.
        """
        with self._lock:
            return {route: dict(methods) for route, methods in self._endpoints.items()}

    # Middleware

    def add_middleware(self, middleware: MiddlewareEntry) -> bool:
        """Add a middleware entry unless its id is taken.

        Args:
            middleware: Middleware entry to register.

        Returns:
            ``True`` if the entry was added, ``False`` if the id is taken.

        Raises:
            ValidationError: If the entry is invalid.
        """
        middleware = middleware.check()
        if self.has_middleware(middleware.id):
            logger.warning("Middleware %s already registered", middleware.id)
            return False

        middleware = self._announce(REGISTRY_ADD_MIDDLEWARE, middleware)

        with self._lock:
            if middleware.id in self._middleware:
                logger.warning("Middleware %s already registered", middleware.id)
                return False
            self._middleware[middleware.id] = middleware
            self._middleware_order = None

        logger.debug("Added middleware %s (priority %d)", middleware.id, middleware.priority)
        return True

    def remove_middleware(self, id: str) -> MiddlewareEntry | None:  # noqa: A002
        """Remove a middleware entry.

        Returns:
            The removed entry, or ``None`` if the id is unknown.
        """
        with self._lock:
            middleware = self._middleware.pop(id, None)
            if middleware is None:
                return None
            self._middleware_order = None

        logger.debug("Removed middleware %s", id)
        return self._announce(REGISTRY_REMOVE_MIDDLEWARE, middleware)

    def has_middleware(self, id: str) -> bool:  # noqa: A002
        """True if a middleware entry with the id is registered."""
        with self._lock:
            return id in self._middleware

    def get_middleware(self, id: str) -> MiddlewareEntry:  # noqa: A002
        """Return the middleware entry with the id.

        Raises:
            RegistryLookupError: If no such entry exists.
        """
        with self._lock:
            middleware = self._middleware.get(id)
        if middleware is None:
            msg = f"Middleware {id} not found"
            raise RegistryLookupError(msg)
        return middleware

    def get_middleware_entries(self) -> list[MiddlewareEntry]:
        """Return all middleware entries in execution order.

        Entries are sorted by priority ascending; entries with equal priority
        keep their registration order.
        """
        with self._lock:
            if self._middleware_order is None:
                self._middleware_order = sorted(self._middleware.values(), key=_by_priority)
            return list(self._middleware_order)

    # Listeners

    def add_listener(self, listener: Listener) -> bool:
        """Add a listener unless its (id, type) pair is taken.

        Args:
            listener: Listener to register.

        Returns:
            ``True`` if the listener was added, ``False`` otherwise.

        Raises:
            ValidationError: If the listener is invalid.
        """
        listener = listener.check()
        if self.has_listener(listener.id, listener.type):
            logger.warning("Listener %s for %s already registered", listener.id, listener.type)
            return False

        listener = self._announce(REGISTRY_ADD_LISTENER, listener)

        with self._lock:
            listeners = self._listeners.setdefault(listener.type, {})
            if listener.id in listeners:
                logger.warning("Listener %s for %s already registered", listener.id, listener.type)
                return False
            listeners[listener.id] = listener
            self._type_listeners.pop(listener.type, None)

        logger.debug(
            "Added listener %s for %s (priority %d)",
            listener.id,
            listener.type,
            listener.priority,
        )
        return True

    def remove_listener(self, id: str, type: str) -> Listener | None:  # noqa: A002
        """Remove a listener.

        Returns:
            The removed listener, or ``None`` if nothing matched.
        """
        with self._lock:
            listeners = self._listeners.get(type)
            if listeners is None or id not in listeners:
                return None
            listener = listeners.pop(id)
            if not listeners:
                del self._listeners[type]
            self._type_listeners.pop(type, None)

        logger.debug("Removed listener %s for %s", id, type)
        return self._announce(REGISTRY_REMOVE_LISTENER, listener)

    def has_listener(self, id: str, type: str) -> bool:  # noqa: A002
        """True if a listener with the id is registered for the event type."""
        with self._lock:
            return id in self._listeners.get(type, {})

    def get_listener(self, id: str, type: str) -> Listener:  # noqa: A002
        """Return the listener with the id for the event type.

        Raises:
            RegistryLookupError: If no such listener exists.
        """
        with self._lock:
            listener = self._listeners.get(type, {}).get(id)
        if listener is None:
            msg = f"Listener {id} for {type} not found"
            raise RegistryLookupError(msg)
        return listener

    def get_type_listeners(self, type: str) -> list[Listener]:  # noqa: A002
        """Return the listeners of an event type in invocation order.

        Listeners are sorted by priority ascending; listeners with equal
        priority keep their registration order.
        """
        with self._lock:
            ordered = self._type_listeners.get(type)
            if ordered is None:
                ordered = sorted(self._listeners.get(type, {}).values(), key=_by_priority)
                self._type_listeners[type] = ordered
            return list(ordered)

    def get_listeners(self) -> dict[str, dict[str, Listener]]:
        """Return a snapshot of all listeners keyed by event type, then id."""
        with self._lock:
            return {type_: dict(listeners) for type_, listeners in self._listeners.items()}

    def _announce(self, event_type: str, record: _RecordT) -> _RecordT:
        """Dispatch a lifecycle event and return the possibly replaced record.

        Runs outside the registry lock so listeners may call back into the
        registry.
        """
        if self._dispatcher is None or not self._config.registry_events:
            return record

        event = self._dispatcher.dispatch(Event(event_type, RegistryChange(self, record)))
        change = event.data
        if not isinstance(change, RegistryChange) or not isinstance(change.record, type(record)):
            msg = f"Listeners of {event_type} must keep a {type(record).__name__} record"
            raise InternalConsistencyError(msg)
        if change.record is record:
            return record
        return change.record.check()
