"""Internal helpers shared across the library."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from pydantic import ValidationError


def format_validation_error_locations(error: ValidationError) -> str:
    """Render validation error locations as a sorted, comma-separated string.

    Args:
        error: Pydantic validation error raised while validating a record.

    Returns:
        Comma-separated dotted paths that indicate failing fields.
    """
    locations = {
        ".".join(str(entry) for entry in detail.get("loc", ())) or "<root>"
        for detail in error.errors()
    }
    return ", ".join(sorted(locations))


def handler_name(handler: object) -> str:
    """Return a safe name for logging a callback, handler or middleware.

    Args:
        handler: Function, partial or capability object.

    Returns:
        Best-effort human-readable name for logging.
    """
    seen: set[int] = set()
    current: object = handler

    while id(current) not in seen:
        seen.add(id(current))
        name: str | None = getattr(current, "__name__", None)
        if name:
            return name

        if isinstance(current, partial):
            current = current.func
            continue

        wrapped = getattr(current, "__wrapped__", None)
        if callable(wrapped) and wrapped is not current:
            current = wrapped
            continue

        break

    return type(current).__name__
