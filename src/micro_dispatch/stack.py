"""Middleware chain around a terminal request handler."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ._utils import handler_name
from .exceptions import InternalConsistencyError
from .protocols import Middleware, RequestHandler

logger: logging.Logger = logging.getLogger(__name__)
"""Logger for the micro_dispatch.stack module."""


class Stack:
    """Single-use chain of middleware ending in a request handler.

    Each middleware receives the stack itself as its ``handler``; calling
    ``handler.handle(request)`` advances to the next middleware, or to the
    terminal handler once the middleware is exhausted. A middleware may
    short-circuit by returning without delegating.

    The cursor is per instance, so build a fresh stack for every request.
    Delegating more than once from the same middleware resumes from the
    cursor's current position: middleware further down that already ran is
    skipped and only the terminal handler runs again.
    """

    __slots__: tuple[str, ...] = ("_cursor", "_handler", "_middleware")

    def __init__(self, middleware: Iterable[Any], handler: RequestHandler) -> None:
        """Build a stack.

        Args:
            middleware: Middleware instances, outermost first.
            handler: Terminal request handler.

        Raises:
            InternalConsistencyError: If an entry is not a middleware or the
                handler is not a request handler.
        """
        self._middleware: list[Middleware] = list(middleware)
        self._handler = handler
        self._cursor = 0

        for entry in self._middleware:
            if not isinstance(entry, Middleware):
                msg = f"{handler_name(entry)} does not implement process(request, handler)"
                raise InternalConsistencyError(msg)
        if not isinstance(handler, RequestHandler):
            msg = f"{handler_name(handler)} does not implement handle(request)"
            raise InternalConsistencyError(msg)

    @classmethod
    def create(cls, middleware: Iterable[Any], handler: RequestHandler) -> Stack:
        """Alternate constructor mirroring the record factories."""
        return cls(middleware, handler)

    def __len__(self) -> int:
        return len(self._middleware)

    @property
    def remaining(self) -> int:
        """Number of middleware not yet entered."""
        return len(self._middleware) - self._cursor

    def handle(self, request: Any) -> Any:
        """Forward ``request`` to the next stage of the chain."""
        if self._cursor < len(self._middleware):
            middleware = self._middleware[self._cursor]
            self._cursor += 1
            logger.debug("Entering middleware %s", handler_name(middleware))
            return middleware.process(request, self)

        logger.debug("Entering handler %s", handler_name(self._handler))
        return self._handler.handle(request)
