"""Configuration for the dispatch core."""

from typing import ClassVar, Self

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from .constants import DEFAULT_MAX_DISPATCH_DEPTH, ID_ATTRIBUTE, ROUTE_ATTRIBUTE


class ServerConfig(BaseModel):
    """Immutable server configuration."""

    model_config: ClassVar[ConfigDict] = {"frozen": True}

    registry_events: bool = True
    """Dispatch ``registry/*`` events when records are added or removed."""

    max_dispatch_depth: int = Field(default=DEFAULT_MAX_DISPATCH_DEPTH, ge=1)
    """Maximum nesting of reentrant dispatches on one call chain."""

    id_attribute: str = Field(default=ID_ATTRIBUTE, min_length=1)
    """Request attribute carrying the resolved endpoint id."""

    route_attribute: str = Field(default=ROUTE_ATTRIBUTE, min_length=1)
    """Request attribute carrying the resolved endpoint route."""

    @model_validator(mode="after")
    def _check_attributes(self) -> Self:
        """Validate the reserved attribute names.

        Returns:
            Self: Validated configuration instance.

        Raises:
            ValueError: If both reserved attributes share a name.
        """
        if self.id_attribute == self.route_attribute:
            msg: str = (
                f"id_attribute and route_attribute must differ "
                f"(both are {self.id_attribute!r})."
            )
            raise ValueError(msg)
        return self
