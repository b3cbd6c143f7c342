"""Registration records and event envelopes for the dispatch core."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.config import ConfigDict

from ._utils import format_validation_error_locations
from .constants import DEFAULT_PRIORITY, MAX_PRIORITY, MIN_PRIORITY
from .exceptions import ValidationError
from .protocols import Middleware, RequestHandler

if TYPE_CHECKING:
    from .registry import Registry


class HttpMethod(StrEnum):
    """HTTP methods an endpoint can be registered for."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class BaseRecord(BaseModel):
    """Base for registry records.

    Immutable, forbids extra fields, allows capability objects as values.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    id: str = Field(min_length=1)
    name: str | None = None
    desc: str | None = None

    @classmethod
    def create(cls, **data: Any) -> Self:
        """Build a validated record.

        Args:
            **data: Record fields.

        Returns:
            Validated record.

        Raises:
            ValidationError: If a required field is missing or out of range.
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            locations = format_validation_error_locations(exc)
            msg = f"Invalid {cls.__name__}: {locations}"
            raise ValidationError(msg, fields=tuple(locations.split(", "))) from exc

    def check(self) -> Self:
        """Re-validate this record.

        Records built through ``model_construct`` skip validation; the
        registry calls this before storing anything.

        Returns:
            A validated copy of the record.

        Raises:
            ValidationError: If the record is invalid.
        """
        return type(self).create(**dict(self))


class Endpoint(BaseRecord):
    """A (route pattern, method) binding to a request handler."""

    route: str = Field(min_length=1)
    method: HttpMethod = HttpMethod.GET
    handler: Any

    @field_validator("route")
    @classmethod
    def _compile_route(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            msg = f"route is not a valid regular expression: {exc}"
            raise ValueError(msg) from exc
        return value

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @field_validator("handler")
    @classmethod
    def _check_handler(cls, value: object) -> object:
        if not isinstance(value, RequestHandler):
            msg = f"handler {type(value).__name__} has no handle() method"
            raise ValueError(msg)  # noqa: TRY004
        return value


class MiddlewareEntry(BaseRecord):
    """A named, prioritized pipeline stage."""

    priority: int = Field(default=DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    instance: Any

    @field_validator("instance")
    @classmethod
    def _check_instance(cls, value: object) -> object:
        if not isinstance(value, Middleware):
            msg = f"instance {type(value).__name__} has no process() method"
            raise ValueError(msg)  # noqa: TRY004
        return value


class Listener(BaseRecord):
    """An observer bound to one event type."""

    type: str = Field(min_length=1)
    priority: int = Field(default=DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    callback: Callable[..., Any]


@dataclass(slots=True)
class Event:
    """Mutable envelope passed through every listener of its type.

    Listeners may replace or mutate ``data`` and call
    :meth:`stop_propagation` to keep later listeners from running.
    """

    type: str
    data: Any = None
    stopped: bool = field(default=False, init=False)

    def stop_propagation(self) -> None:
        """Prevent the remaining listeners from being invoked."""
        self.stopped = True

    @property
    def is_propagation_stopped(self) -> bool:
        """True once a listener has stopped propagation."""
        return self.stopped


@dataclass(slots=True)
class Exchange:
    """Payload of ``server/request`` and ``server/response`` events.

    ``response`` is ``None`` while the request is still in flight.
    """

    request: Any
    response: Any = None


@dataclass(slots=True)
class RegistryChange:
    """Payload of ``registry/*`` lifecycle events."""

    registry: Registry
    record: BaseRecord
