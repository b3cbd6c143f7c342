"""Minimal immutable request and response messages.

Hosts usually bring their own HTTP message types. These cover the
:class:`~micro_dispatch.protocols.ServerRequest` contract for tests, examples
and embedding without a web stack.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class BaseMessage(BaseModel):
    """Base for messages: immutable, forbids extra fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    @field_validator("headers")
    @classmethod
    def _lower_header_names(cls, value: dict[str, str]) -> dict[str, str]:
        """Header names are case-insensitive; store them lower-cased."""
        return {name.lower(): header for name, header in value.items()}

    def get_header(self, name: str, default: str | None = None) -> str | None:
        """Return a header value by case-insensitive name."""
        return self.headers.get(name.lower(), default)

    def has_header(self, name: str) -> bool:
        """True if the header is present."""
        return name.lower() in self.headers

    def with_header(self, name: str, value: str) -> BaseMessage:
        """Return a copy carrying the header."""
        return self.model_copy(update={"headers": {**self.headers, name.lower(): value}})

    def with_body(self, body: str) -> BaseMessage:
        """Return a copy with a replaced body."""
        return self.model_copy(update={"body": body})


class Request(BaseMessage):
    """Server request with routing attributes."""

    method: str = "GET"
    path: str = "/"
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Return a request attribute, or ``default`` if unset."""
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a copy carrying the attribute; this request is unchanged."""
        return self.model_copy(update={"attributes": {**self.attributes, name: value}})


class Response(BaseMessage):
    """Handler response."""

    status_code: int = Field(default=HTTPStatus.OK.value, ge=100, le=599)

    @property
    def reason(self) -> str:
        """Standard reason phrase for the status code, if known."""
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return ""

    def with_status(self, status_code: int) -> Response:
        """Return a copy with a different status code."""
        return self.model_copy(update={"status_code": status_code})
