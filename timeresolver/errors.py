"""
Error taxonomy for temporal expression resolution.

All errors derive from ``TemporalError`` (itself a ``ValueError``), so callers
that only care about "could not resolve" can catch the base class while
reporting code can branch on the concrete class.
"""


class TemporalError(ValueError):
    """Base class for every classified resolution failure."""


class InvalidPosition(TemporalError):
    """An ordinal position is malformed (zero, or negative other than -1)."""


class InvalidDateTime(TemporalError):
    """An expression is structurally inconsistent and cannot be resolved."""


class NotGregorianDateTime(TemporalError):
    """The requested date does not exist in the Gregorian calendar.

    Raised when an ordinal position exceeds its containing period (e.g. the
    fifth Monday of a month with four) or when filled fields do not form a
    valid date (e.g. February 30).
    """


class UnsupportedUnit(TemporalError):
    """The unit/position combination has no resolution rule."""
