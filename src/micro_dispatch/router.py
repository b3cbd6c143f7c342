"""Route resolution and endpoint execution."""

import logging
import re
from typing import Any

from .config import ServerConfig
from .exceptions import MethodNotAllowedError, NotFoundError
from .models import Endpoint
from .protocols import ServerRequest
from .registry import Registry
from .stack import Stack

logger: logging.Logger = logging.getLogger(__name__)
"""Logger for the micro_dispatch.router module."""


class Router:
    """Routes requests to the endpoint matching their path and method.

    Routes are tried in registration order and the first full match wins, so
    overlapping patterns resolve to the one registered first.
    """

    __slots__: tuple[str, ...] = ("_config", "_registry")

    def __init__(self, registry: Registry, *, config: ServerConfig | None = None) -> None:
        """Initialize a router over ``registry``.

        Args:
            registry: Registry providing endpoints and middleware.
            config: Server configuration; defaults to the registry's.
        """
        self._registry = registry
        self._config = config or registry.config

    def handle(self, request: ServerRequest) -> Any:
        """Resolve the endpoint for ``request`` and run it through the middleware.

        Args:
            request: Request satisfying the ``ServerRequest`` protocol.

        Returns:
            Response produced by the middleware chain.

        Raises:
            NotFoundError: If no route matches the request path.
            MethodNotAllowedError: If the route has no endpoint for the method.
        """
        endpoint, attributes = self.resolve(request)
        for name, value in attributes.items():
            request = request.with_attribute(name, value)

        return self.build_stack(endpoint).handle(request)

    def resolve(self, request: ServerRequest) -> tuple[Endpoint, dict[str, str]]:
        """Find the endpoint for ``request`` and the attributes to attach.

        Returns:
            The endpoint and the route attributes: named groups that took
            part in the match plus the endpoint id and route.
        """
        path: str = request.path
        method: str = request.method.upper()

        for route, methods in self._registry.get_endpoints().items():
            match = re.fullmatch(route, path)
            if match is None:
                continue

            endpoint = methods.get(method)
            if endpoint is None:
                logger.debug("Route %s has no %s endpoint", route, method)
                raise MethodNotAllowedError(method, path, tuple(methods))

            attributes = {
                name: value for name, value in match.groupdict().items() if value is not None
            }
            attributes[self._config.id_attribute] = endpoint.id
            attributes[self._config.route_attribute] = endpoint.route
            logger.debug("Resolved %s %s to endpoint %s", method, path, endpoint.id)
            return endpoint, attributes

        logger.debug("No route matches %s %s", method, path)
        raise NotFoundError(path)

    def build_stack(self, endpoint: Endpoint) -> Stack:
        """Return a fresh stack of the registered middleware around ``endpoint``."""
        entries = self._registry.get_middleware_entries()
        return Stack([entry.instance for entry in entries], endpoint.handler)
