"""Priority-ordered event bus."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from ._utils import handler_name
from .exceptions import InternalConsistencyError

if TYPE_CHECKING:
    from .config import ServerConfig
    from .models import Event
    from .registry import Registry

logger: logging.Logger = logging.getLogger(__name__)
"""Logger for the micro_dispatch.dispatcher module."""


class Dispatcher:
    """Invokes the listeners of an event type in priority order.

    Listeners share one mutable event and run until the list is exhausted or
    one of them stops propagation. Listener errors are not caught: they abort
    the dispatch and propagate to the caller.

    The set of event types currently being dispatched is tracked per thread,
    so :meth:`is_processing` answers for the calling chain only.
    """

    __slots__: tuple[str, ...] = ("_config", "_local", "_registry")

    def __init__(self, registry: Registry, *, config: ServerConfig | None = None) -> None:
        """Initialize a dispatcher reading listeners from ``registry``.

        Args:
            registry: Registry providing listeners.
            config: Server configuration; defaults to the registry's.
        """
        self._registry = registry
        self._config = config or registry.config
        self._local = threading.local()

    def _processing(self) -> list[str]:
        stack: list[str] | None = getattr(self._local, "stack", None)
        if stack is None:
            stack = []
            self._local.stack = stack
        return stack

    def get_listeners_for_event(self, event: Event) -> Iterator[tuple[str, Callable[..., Any]]]:
        """Yield ``(listener id, callback)`` pairs for the event's type."""
        for listener in self._registry.get_type_listeners(event.type):
            yield listener.id, listener.callback

    def dispatch(self, event: Event) -> Event:
        """Pass ``event`` through every listener of its type.

        Args:
            event: Event to dispatch.

        Returns:
            The same event, possibly mutated by listeners.

        Raises:
            InternalConsistencyError: If reentrant dispatches nest deeper than
                ``max_dispatch_depth``.
        """
        processing = self._processing()
        if len(processing) >= self._config.max_dispatch_depth:
            msg = (
                f"Dispatch of {event.type} exceeds max_dispatch_depth "
                f"({self._config.max_dispatch_depth}); in progress: {', '.join(processing)}"
            )
            raise InternalConsistencyError(msg)

        processing.append(event.type)
        try:
            for listener_id, callback in self.get_listeners_for_event(event):
                if event.stopped:
                    break
                logger.debug(
                    "Dispatching %s to listener %s (%s)",
                    event.type,
                    listener_id,
                    handler_name(callback),
                )
                callback(event)
            if event.stopped:
                logger.debug("Propagation of %s stopped", event.type)
        finally:
            processing.pop()

        return event

    def is_processing(self, type: str) -> bool:  # noqa: A002
        """True while an event of ``type`` is being dispatched on this thread."""
        return type in self._processing()
