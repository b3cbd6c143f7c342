"""Exceptions raised by the dispatch core."""

from http import HTTPStatus


class DispatchError(Exception):
    """Base exception for dispatch core failures.

    Attributes:
        status_code: HTTP status code equivalent if available.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize with error details.

        Args:
            message: Error description.
            status_code: HTTP status code equivalent if available.
        """
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        """Return error message with status code if available."""
        if self.status_code is not None:
            return f"{super().__str__()} (HTTP {self.status_code})"
        return super().__str__()

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        parts = [f"message={self.args[0]!r}"]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        return f"{self.__class__.__name__}({', '.join(parts)})"


class ValidationError(DispatchError, ValueError):
    """A registered record failed required-field or range checks.

    Attributes:
        fields: Dotted paths of the failing fields.
    """

    def __init__(self, message: str, *, fields: tuple[str, ...] = ()) -> None:
        """Initialize with the failing field paths.

        Args:
            message: Error description.
            fields: Dotted paths of the failing fields.
        """
        super().__init__(message)
        self.fields = fields


class RoutingError(DispatchError):
    """Request could not be routed to an endpoint."""


class NotFoundError(RoutingError):
    """No route pattern matches the request path (404)."""

    def __init__(self, path: str) -> None:
        """Initialize with the unmatched path.

        Args:
            path: Request path that matched no route.
        """
        super().__init__(
            f"No route matches {path!r}", status_code=HTTPStatus.NOT_FOUND.value
        )
        self.path = path


class MethodNotAllowedError(RoutingError):
    """A route matches but has no endpoint for the request method (405)."""

    def __init__(self, method: str, path: str, allowed: tuple[str, ...] = ()) -> None:
        """Initialize with the rejected method and the methods the route serves.

        Args:
            method: Request method.
            path: Request path.
            allowed: Methods registered for the matching route.
        """
        super().__init__(
            f"Method {method} not allowed for {path!r}",
            status_code=HTTPStatus.METHOD_NOT_ALLOWED.value,
        )
        self.method = method
        self.path = path
        self.allowed = allowed


class RegistryLookupError(DispatchError, LookupError):
    """An exact-key registry lookup found nothing."""

    def __init__(self, message: str) -> None:
        """Initialize as an internal (500) condition.

        Args:
            message: Error description.
        """
        super().__init__(message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value)


class InternalConsistencyError(DispatchError):
    """The core reached a state that indicates a registration bug."""

    def __init__(self, message: str) -> None:
        """Initialize as an internal (500) condition.

        Args:
            message: Error description.
        """
        super().__init__(message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value)
