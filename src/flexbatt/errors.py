"""Exception types raised by flexbatt."""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "FlexbattError",
    "InvalidRequestError",
    "InvalidPathError",
    "DegenerateGeometryError",
    "BooleanError",
    "CatalogError",
]


class FlexbattError(ValueError):
    """Base class; records which parameter (and value) caused the failure."""

    def __init__(self, message: str, *, parameter: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.parameter = parameter
        self.value = value


class InvalidRequestError(FlexbattError):
    """A holder request was rejected before any geometry was built."""


class InvalidPathError(FlexbattError):
    """A sweep path is malformed."""


class DegenerateGeometryError(FlexbattError):
    """Parameters would produce an empty, inverted or self-intersecting solid."""


class BooleanError(FlexbattError):
    """The boolean backend failed."""


class CatalogError(FlexbattError):
    """Preset catalog data is missing or malformed."""
