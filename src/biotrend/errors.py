"""Exception types raised by the engine."""

from __future__ import annotations


class BiotrendError(Exception):
    """Base class for engine errors."""


class InvalidParameterError(BiotrendError, ValueError):
    """A numeric parameter is outside the range a formula is defined for."""
