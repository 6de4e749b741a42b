"""
Temporal expression tree.

A temporal expression is a structured fragment extracted from text ("the
second Monday of August", "last year", "the first week of 2015") together
with the token span it came from. Expressions are immutable and compose
recursively: offsets and ordinals reference another expression as their
anchor, the expression that supplies the containing period.

Variants:
- PointDate: a date with fields possibly unset, optionally carrying a weekday
- SimpleDateTime: a date-time with fields possibly unset
- RelativeOffset: a signed number of units added to an anchor
- OrdinalExpression: the Nth (or last) unit within the anchor's period

Each expression implements .resolve(reference) -> datetime; the algorithms
live in ``timeresolver.resolver``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union as UnionType

from .errors import InvalidDateTime, InvalidPosition
from .gregorian import CalendarDateTime, DayOfWeekType, day_of_week
from . import lexicon


# =============================================================================
# Enums
# =============================================================================

class Unit(Enum):
    """Units a RelativeOffset can shift by."""
    SECOND = "SECOND"
    MINUTE = "MINUTE"
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"

    @classmethod
    def from_tag(cls, tag: str) -> 'Unit':
        name = lexicon.parse_unit_tag(tag)
        if name is None or name.upper() not in cls.__members__:
            raise InvalidDateTime(f"Unknown offset unit: {tag!r}")
        return cls[name.upper()]


class OrdinalUnit(Enum):
    """Units an OrdinalExpression can count within a period."""
    DAY = "Day"
    WEEK = "Week"
    WEEKEND = "Weekend"
    MONTH = "Month"
    YEAR = "Year"


class Scope(Enum):
    """The kind of period an anchor denotes."""
    MONTH = "month"
    YEAR = "year"


# Unit tag of an ordinal counted over weekday-bearing point dates.
DATE_UNIT_TAG = "Date"


# =============================================================================
# Position
# =============================================================================

class Position(ABC):
    """
    An ordinal position: the Nth or the last.

    The count encodes the position: 1 = first, 2 = second, ..., -1 = last.
    """
    count: int

    @abstractmethod
    def __str__(self) -> str:
        """The standard rendering: "n. 2" or "last"."""

    @property
    def is_last(self) -> bool:
        return self.count == -1

    @staticmethod
    def encode(count: int) -> 'Position':
        return encode(count)

    @staticmethod
    def parse(text: str) -> 'Position':
        """Build a position from a word such as "second", "3rd" or "last"."""
        count = lexicon.parse_ordinal_count(text)
        if count is None:
            raise InvalidPosition(f"Not an ordinal position: {text!r}")
        return encode(count)


@dataclass(frozen=True)
class Ordinal(Position):
    """The Nth position (count >= 1)."""
    count: int

    def __post_init__(self):
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidPosition(f"Ordinal count must be an int, got {self.count!r}")
        if self.count < 1:
            raise InvalidPosition(f"Ordinal count must be positive, got {self.count}")

    def __str__(self) -> str:
        return f"n. {self.count}"

    def __repr__(self) -> str:
        return f"Ordinal(count={self.count})"


class Last(Position):
    """The last position. A singleton: use ``LAST``."""
    _instance = None
    count = -1

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __str__(self) -> str:
        return "last"

    def __repr__(self) -> str:
        return "Last()"


LAST = Last()


def encode(count: int) -> Position:
    """
    Encode a signed count as a position.

    Raises:
        InvalidPosition: for 0 and for negative counts other than -1
    """
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidPosition(f"Position count must be an int, got {count!r}")
    if count == -1:
        return LAST
    if count < 1:
        raise InvalidPosition(f"Invalid position count: {count}")
    return Ordinal(count)


# =============================================================================
# Base Class
# =============================================================================

def _check_span(start_token: int, end_token: int) -> None:
    for name, value in (("start_token", start_token), ("end_token", end_token)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidDateTime(f"{name} must be a non-negative int, got {value!r}")
    if start_token > end_token:
        raise InvalidDateTime(f"Token span [{start_token}, {end_token}] is reversed")


def _check_scope(scope: Optional[Scope]) -> None:
    if scope is not None and not isinstance(scope, Scope):
        raise InvalidDateTime(f"scope must be a Scope, got {scope!r}")


class TemporalExpression(ABC):
    """Base class for all temporal expressions."""
    start_token: int
    end_token: int

    @property
    @abstractmethod
    def period_scope(self) -> Scope:
        """Whether this expression, used as an anchor, denotes a month or a year."""

    @abstractmethod
    def to_standard_format(self) -> str:
        """The canonical human-readable rendering of this expression."""

    @abstractmethod
    def to_json(self) -> Dict[str, Any]:
        """The structured, order-stable export record of this expression."""

    def resolve(self, reference: Optional[datetime] = None, settings=None) -> datetime:
        """
        Resolve this expression to an absolute datetime.

        Args:
            reference: The instant relative expressions are resolved against
                (defaults to now, see ``timeresolver.conf.Settings``)

        Raises:
            TemporalError: one of its subclasses, classifying the failure
        """
        from .resolver import resolve
        return resolve(self, reference, settings=settings)

    def __str__(self) -> str:
        return self.to_standard_format()


# =============================================================================
# Point dates and date-times
# =============================================================================

@dataclass(frozen=True)
class PointDate(TemporalExpression):
    """
    A date whose fields may be unset, optionally restricted to a weekday.

    Examples:
        PointDate(year=2015, month=8)                 # August 2015
        PointDate(month=8, day=7)                     # August 7 (year unknown)
        PointDate(weekday=DayOfWeekType.MONDAY)       # Monday
    """
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    weekday: Optional[DayOfWeekType] = None
    scope: Optional[Scope] = None
    start_token: int = 0
    end_token: int = 0

    def __post_init__(self):
        value = self.value
        if self.weekday is not None:
            if not isinstance(self.weekday, DayOfWeekType):
                raise InvalidDateTime(f"weekday must be a DayOfWeekType, got {self.weekday!r}")
            if value.year is not None and value.month is not None and value.day is not None:
                actual = day_of_week(value.year, value.month, value.day)
                if actual != self.weekday:
                    raise InvalidDateTime(
                        f"{value.date_text()} is a {actual.name.capitalize()}, "
                        f"not a {self.weekday.name.capitalize()}"
                    )
        _check_scope(self.scope)
        _check_span(self.start_token, self.end_token)

    @property
    def value(self) -> CalendarDateTime:
        return CalendarDateTime(year=self.year, month=self.month, day=self.day)

    @property
    def is_weekday_only(self) -> bool:
        """True if the weekday is the only field set (e.g. "Monday")."""
        return (self.weekday is not None and self.year is None
                and self.month is None and self.day is None)

    @property
    def period_scope(self) -> Scope:
        if self.scope is not None:
            return self.scope
        return Scope.YEAR if self.month is None else Scope.MONTH

    def to_standard_format(self) -> str:
        if self.is_weekday_only:
            return self.weekday.name.capitalize()
        text = self.value.date_text()
        if self.weekday is not None:
            text += f" {self.weekday.name.capitalize()}"
        return text

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": "date",
            "startToken": self.start_token,
            "endToken": self.end_token,
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "weekDay": self.weekday.iso if self.weekday is not None else None,
            "scope": self.scope.value if self.scope is not None else None,
        }

    def __repr__(self) -> str:
        parts = []
        for name in ("year", "month", "day"):
            if getattr(self, name) is not None:
                parts.append(f"{name}={getattr(self, name)}")
        if self.weekday is not None:
            parts.append(f"weekday={self.weekday.name}")
        if self.scope is not None:
            parts.append(f"scope={self.scope.name}")
        return f"PointDate({', '.join(parts)})"


@dataclass(frozen=True)
class SimpleDateTime(TemporalExpression):
    """
    A date-time whose fields may be unset, used as a base for offsets.

    Examples:
        SimpleDateTime(CalendarDateTime(2015, 8, 10, 14, 30, 0))   # fully anchored
        SimpleDateTime(CalendarDateTime(hour=9))                   # 9 o'clock, date from reference
    """
    value: CalendarDateTime = field(default_factory=CalendarDateTime)
    scope: Optional[Scope] = None
    start_token: int = 0
    end_token: int = 0

    def __post_init__(self):
        if not isinstance(self.value, CalendarDateTime):
            raise InvalidDateTime(f"value must be a CalendarDateTime, got {self.value!r}")
        _check_scope(self.scope)
        _check_span(self.start_token, self.end_token)

    @property
    def period_scope(self) -> Scope:
        if self.scope is not None:
            return self.scope
        return Scope.YEAR if self.value.month is None else Scope.MONTH

    def to_standard_format(self) -> str:
        return str(self.value)

    def to_json(self) -> Dict[str, Any]:
        record = {
            "type": "dateTime",
            "startToken": self.start_token,
            "endToken": self.end_token,
        }
        for name in CalendarDateTime.field_names():
            record[name] = getattr(self.value, name)
        record["scope"] = self.scope.value if self.scope is not None else None
        return record

    def __repr__(self) -> str:
        if self.scope is not None:
            return f"SimpleDateTime(value={self.value!r}, scope={self.scope.name})"
        return f"SimpleDateTime(value={self.value!r})"


# =============================================================================
# Relative offsets
# =============================================================================

@dataclass(frozen=True)
class RelativeOffset(TemporalExpression):
    """
    A signed number of units added to an anchor.

    Without an anchor the offset applies to the reference instant itself.

    Examples:
        RelativeOffset(value=-1, unit=Unit.YEAR)                   # "last year"
        RelativeOffset(value=3, unit=Unit.DAY, anchor=PointDate(2015, 8, 7))
            -> "3 days after August 7, 2015"
    """
    value: int
    unit: Unit
    anchor: Optional[TemporalExpression] = None
    scope: Optional[Scope] = None
    start_token: int = 0
    end_token: int = 0

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidDateTime(f"Offset value must be an int, got {self.value!r}")
        if not isinstance(self.unit, Unit):
            raise InvalidDateTime(f"Offset unit must be a Unit, got {self.unit!r}")
        if self.anchor is not None and not isinstance(self.anchor, TemporalExpression):
            raise InvalidDateTime(f"Offset anchor must be a TemporalExpression, got {self.anchor!r}")
        _check_scope(self.scope)
        _check_span(self.start_token, self.end_token)

    @property
    def period_scope(self) -> Scope:
        if self.scope is not None:
            return self.scope
        return Scope.YEAR if self.unit == Unit.YEAR else Scope.MONTH

    def to_standard_format(self) -> str:
        unit = self.unit.value.lower()
        if abs(self.value) != 1:
            unit += "s"
        anchor = self.anchor.to_standard_format() if self.anchor is not None else "now"
        return f"{self.value:+d} {unit} from {anchor}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": "offset",
            "startToken": self.start_token,
            "endToken": self.end_token,
            "value": self.value,
            "unit": self.unit.value.lower(),
            "anchor": self.anchor.to_json() if self.anchor is not None else None,
            "scope": self.scope.value if self.scope is not None else None,
        }

    def __repr__(self) -> str:
        parts = [f"value={self.value}", f"unit={self.unit.value}"]
        if self.anchor is not None:
            parts.append(f"anchor={self.anchor!r}")
        if self.scope is not None:
            parts.append(f"scope={self.scope.name}")
        return f"RelativeOffset({', '.join(parts)})"


# =============================================================================
# Ordinal expressions
# =============================================================================

@dataclass(frozen=True)
class OrdinalExpression(TemporalExpression):
    """
    The Nth (or last) unit within the period of an anchor.

    The unit is either an ``OrdinalUnit`` or a ``PointDate`` carrying only a
    weekday, which counts occurrences of that weekday.

    Examples:
        OrdinalExpression(Ordinal(2), PointDate(weekday=MONDAY), PointDate(year=2015, month=8))
            -> "the second Monday of August 2015"
        OrdinalExpression(Ordinal(1), OrdinalUnit.WEEK, PointDate(year=2015))
            -> "the first week of 2015"
    """
    position: Position
    unit: UnionType[OrdinalUnit, PointDate]
    anchor: TemporalExpression
    start_token: int = 0
    end_token: int = 0

    def __post_init__(self):
        if not isinstance(self.position, Position):
            raise InvalidPosition(f"position must be a Position, got {self.position!r}")
        if isinstance(self.unit, PointDate):
            if not self.unit.is_weekday_only:
                raise InvalidDateTime(
                    "An ordinal over dates must count a weekday only "
                    "(e.g. 'the second Monday of August'), "
                    f"got {self.unit.to_standard_format()!r}"
                )
        elif not isinstance(self.unit, OrdinalUnit):
            raise InvalidDateTime(f"unit must be an OrdinalUnit or a PointDate, got {self.unit!r}")
        if not isinstance(self.anchor, TemporalExpression):
            raise InvalidDateTime(f"anchor must be a TemporalExpression, got {self.anchor!r}")
        _check_span(self.start_token, self.end_token)

    @property
    def date(self) -> Optional[PointDate]:
        """The weekday point date being counted, if this ordinal counts dates."""
        return self.unit if isinstance(self.unit, PointDate) else None

    @property
    def unit_tag(self) -> str:
        return DATE_UNIT_TAG if self.date is not None else self.unit.value

    @property
    def period_scope(self) -> Scope:
        return Scope.MONTH

    def to_standard_format(self) -> str:
        if self.date is not None:
            unit = self.date.to_standard_format()
        else:
            unit = self.unit_tag.lower()
        return f"the {self.position} {unit} of {self.anchor.to_standard_format()}"

    def to_json(self) -> Dict[str, Any]:
        record = {
            "type": "ordinal",
            "startToken": self.start_token,
            "endToken": self.end_token,
            "position": self.position.count,
            "anchor": self.anchor.to_json(),
            "unit": self.unit_tag,
        }
        if self.date is not None:
            record["date"] = self.date.to_json()
        return record

    def __repr__(self) -> str:
        return (f"OrdinalExpression(position={self.position!r}, unit={self.unit!r}, "
                f"anchor={self.anchor!r})")
