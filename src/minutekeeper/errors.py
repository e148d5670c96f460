"""Exceptions raised by minutekeeper."""

from __future__ import annotations


class MinutesError(Exception):
    """Base class for all minutekeeper errors."""


class ConstructionError(MinutesError, ValueError):
    """Invalid or missing argument while building a minutes document."""


class UnknownFieldError(MinutesError, ValueError):
    """An update touched a field outside the minutes schema."""


class CacheError(MinutesError):
    """The local cache snapshot could not be read."""


class MethodNotFoundError(MinutesError):
    """No handler is registered for a remote operation name."""
