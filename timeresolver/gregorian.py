"""
Calendar primitives over the proleptic Gregorian calendar.

Python's ``datetime`` already implements the proleptic Gregorian calendar
(no 1582 reform gap), so these helpers are thin, pure wrappers around it and
``calendar``. ``CalendarDateTime`` adds what ``datetime`` cannot express:
fields that are not known yet.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Tuple, Union
import calendar

from dateutil.relativedelta import relativedelta

from .errors import InvalidDateTime, NotGregorianDateTime


ONE_DAY = timedelta(days=1)


# =============================================================================
# Enums
# =============================================================================

class DayOfWeekType(Enum):
    """Days of the week, numbered like ``datetime.weekday()``."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def iso(self) -> int:
        """ISO 8601 weekday number (Monday = 1, Sunday = 7)."""
        return self.value + 1

    @classmethod
    def from_iso(cls, number: int) -> 'DayOfWeekType':
        if not 1 <= number <= 7:
            raise InvalidDateTime(f"ISO weekday must be in 1..7, got {number}")
        return cls(number - 1)


# =============================================================================
# Pure calendar queries
# =============================================================================

def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, days_in_month(year, month))


def day_of_week(year: int, month: int, day: int) -> DayOfWeekType:
    return DayOfWeekType(calendar.weekday(year, month, day))


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def add_calendar(dt: datetime, **kwargs) -> datetime:
    """
    Add calendar units with calendar-correct rollover.

    Months and years clamp the day to the last valid day of the target month,
    so 2016-02-29 plus one year is 2017-02-28.

    Example:
        add_calendar(datetime(2015, 1, 31), months=1) -> 2015-02-28
    """
    return dt + relativedelta(**kwargs)


# =============================================================================
# CalendarDateTime
# =============================================================================

_FIELD_RANGES = {
    'year': (1, 9999),
    'month': (1, 12),
    'day': (1, 31),
    'hour': (0, 23),
    'minute': (0, 59),
    'second': (0, 59),
}

# Value an unset field takes when a date-time is compared or advanced.
_FIELD_MINIMUMS = {
    'year': 1,
    'month': 1,
    'day': 1,
    'hour': 0,
    'minute': 0,
    'second': 0,
}


@dataclass(frozen=True)
class CalendarDateTime:
    """
    A calendar date-time whose fields may be unset.

    Parameters are ordered largest→smallest: year, month, day, hour, minute, second.

    Examples:
        CalendarDateTime(year=2015, month=8)       # August 2015
        CalendarDateTime(month=8, day=10)           # August 10 (year unknown)
        CalendarDateTime(hour=14, minute=30)        # 2:30 PM (date unknown)
    """
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[int] = None

    def __post_init__(self):
        for name, (low, high) in _FIELD_RANGES.items():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidDateTime(f"{name} must be an int, got {value!r}")
            if not low <= value <= high:
                raise InvalidDateTime(f"{name} must be in {low}..{high}, got {value}")

        if self.month is not None and self.day is not None:
            # Without a year, February 29 is still a possible date.
            year = self.year if self.year is not None else 2000
            if self.day > days_in_month(year, self.month):
                raise NotGregorianDateTime(
                    f"Day {self.day} does not exist in {year:04d}-{self.month:02d}"
                )

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_datetime(cls, dt: Union[datetime, date]) -> 'CalendarDateTime':
        if isinstance(dt, datetime):
            return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)
        return cls(dt.year, dt.month, dt.day, 0, 0, 0)

    def unset_fields(self) -> Tuple[str, ...]:
        return tuple(name for name in self.field_names() if getattr(self, name) is None)

    @property
    def is_complete(self) -> bool:
        return not self.unset_fields()

    def fill_from(self, reference: datetime) -> 'CalendarDateTime':
        """
        Complete this date-time from a reference, one field at a time.

        Every unset field copies the same field of ``reference``; set fields
        are left untouched. This is gap filling, not a search for the next
        matching date: "August 7" filled from 2015-09-01 is 2015-08-07.

        Raises:
            NotGregorianDateTime: if the completed fields are not a valid date
                (e.g. day=31 filled with a reference in February).
        """
        missing = {name: getattr(reference, name) for name in self.unset_fields()}
        return replace(self, **missing)

    def with_minimums(self) -> 'CalendarDateTime':
        """Return a copy where every unset field takes its minimum valid value."""
        return replace(self, **{name: _FIELD_MINIMUMS[name] for name in self.unset_fields()})

    def to_datetime(self, tzinfo=None) -> datetime:
        if not self.is_complete:
            raise InvalidDateTime(
                f"Cannot build an instant from {self}: unset fields {', '.join(self.unset_fields())}"
            )
        return datetime(self.year, self.month, self.day,
                        self.hour, self.minute, self.second, tzinfo=tzinfo)

    def date_text(self) -> str:
        year = f"{self.year:04d}" if self.year is not None else "XXXX"
        month = f"{self.month:02d}" if self.month is not None else "XX"
        day = f"{self.day:02d}" if self.day is not None else "XX"
        return f"{year}-{month}-{day}"

    def time_text(self) -> str:
        return ":".join(
            f"{value:02d}" if value is not None else "XX"
            for value in (self.hour, self.minute, self.second)
        )

    def __str__(self) -> str:
        return f"{self.date_text()}T{self.time_text()}"

    def __repr__(self) -> str:
        parts = [f"{name}={getattr(self, name)}" for name in self.field_names()
                 if getattr(self, name) is not None]
        return f"CalendarDateTime({', '.join(parts)})"
