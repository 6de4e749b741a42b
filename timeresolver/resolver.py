"""
Resolution of temporal expressions into absolute datetimes.

The resolver walks an expression tree bottom-up: anchors are resolved before
the expressions that reference them. Every failure is raised as a
``TemporalError`` subclass.

Ordinal expressions count within the period of their anchor, either its
month or its whole year (``Scope``):
- forward for "the Nth ...": the count must complete inside the period,
  otherwise ``NotGregorianDateTime``
- backward for "the last ...": from the final day of the period
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Union

from dateutil import tz
from tzlocal import get_localzone

from .conf import apply_settings
from .errors import (
    InvalidDateTime, NotGregorianDateTime, TemporalError, UnsupportedUnit,
)
from .expressions import (
    TemporalExpression, PointDate, SimpleDateTime, RelativeOffset, OrdinalExpression,
    OrdinalUnit, Position, Scope, Unit,
)
from .gregorian import (
    ONE_DAY, CalendarDateTime, DayOfWeekType, add_calendar, last_day_of_month,
)

logger = logging.getLogger(__name__)


# relativedelta keyword for each offset unit
_OFFSET_KWARGS = {
    Unit.SECOND: 'seconds',
    Unit.MINUTE: 'minutes',
    Unit.HOUR: 'hours',
    Unit.DAY: 'days',
    Unit.WEEK: 'weeks',
    Unit.MONTH: 'months',
    Unit.YEAR: 'years',
}


@dataclass(frozen=True)
class _Period:
    """The month or year an ordinal counts within."""
    year: int
    month: int
    scope: Scope

    @property
    def first_day(self) -> date:
        if self.scope == Scope.YEAR:
            return date(self.year, 1, 1)
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        if self.scope == Scope.YEAR:
            return date(self.year, 12, 31)
        return last_day_of_month(self.year, self.month)

    @property
    def length(self) -> int:
        return (self.last_day - self.first_day).days + 1

    def contains(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    def __str__(self) -> str:
        if self.scope == Scope.YEAR:
            return f"{self.year:04d}"
        return f"{self.year:04d}-{self.month:02d}"


class Resolver:
    """
    Resolves temporal expressions against a reference instant.

    A resolver holds only its settings and may be shared freely across
    threads.
    """

    def __init__(self, settings):
        self._settings = settings
        self._max_depth = settings.MAX_ANCHOR_DEPTH

    def resolve(self, expr: TemporalExpression, reference: datetime) -> datetime:
        return self._resolve(expr, reference, 0)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _check(self, expr, depth: int) -> None:
        if depth > self._max_depth:
            raise InvalidDateTime(
                f"Anchor chain deeper than {self._max_depth} levels"
            )
        if not isinstance(expr, TemporalExpression):
            raise InvalidDateTime(f"Not a temporal expression: {expr!r}")

    def _resolve(self, expr: TemporalExpression, reference: datetime, depth: int) -> datetime:
        self._check(expr, depth)
        logger.debug("Resolving %s [%d, %d] at depth %d",
                     type(expr).__name__, expr.start_token, expr.end_token, depth)

        if isinstance(expr, PointDate):
            return self._resolve_point_date(expr, reference)
        elif isinstance(expr, SimpleDateTime):
            return self._resolve_simple(expr, reference)
        elif isinstance(expr, RelativeOffset):
            return self._resolve_offset(expr, reference, depth)
        elif isinstance(expr, OrdinalExpression):
            return self._resolve_ordinal(expr, reference, depth)

        raise InvalidDateTime(f"Unknown expression type: {type(expr).__name__}")

    # =========================================================================
    # Point dates and date-times
    # =========================================================================

    def _resolve_point_date(self, expr: PointDate, reference: datetime) -> datetime:
        # A date has no time of day: it starts at midnight.
        filled = CalendarDateTime(expr.year, expr.month, expr.day, 0, 0, 0).fill_from(reference)
        result = filled.to_datetime(tzinfo=reference.tzinfo)

        if expr.weekday is not None and expr.day is None:
            # The weekday within the week containing the filled date
            first = self._settings.first_day_of_week
            week_start = result - (result.weekday() - first.value) % 7 * ONE_DAY
            shifted = week_start + (expr.weekday.value - first.value) % 7 * ONE_DAY

            # A set month or year is kept: take the occurrence on its side of the boundary.
            if expr.month is not None or expr.year is not None:
                scope = Scope.MONTH if expr.month is not None else Scope.YEAR
                period = _Period(result.year, result.month, scope)
                if shifted.date() < period.first_day:
                    shifted += 7 * ONE_DAY
                elif shifted.date() > period.last_day:
                    shifted -= 7 * ONE_DAY
            result = shifted
        elif expr.weekday is not None and result.weekday() != expr.weekday.value:
            raise InvalidDateTime(
                f"{result.date().isoformat()} is not a {expr.weekday.name.capitalize()}"
            )

        return result

    def _resolve_simple(self, expr: SimpleDateTime, reference: datetime) -> datetime:
        return expr.value.fill_from(reference).to_datetime(tzinfo=reference.tzinfo)

    # =========================================================================
    # Offsets
    # =========================================================================

    def _resolve_offset(self, expr: RelativeOffset, reference: datetime, depth: int) -> datetime:
        if expr.anchor is None:
            base = reference
        else:
            base = self._resolve(expr.anchor, reference, depth + 1)

        kwarg = _OFFSET_KWARGS.get(expr.unit)
        if kwarg is None:
            raise UnsupportedUnit(f"Offsets by {expr.unit} are not supported")

        try:
            return add_calendar(base, **{kwarg: expr.value})
        except (ValueError, OverflowError) as e:
            raise NotGregorianDateTime(
                f"Offset {expr.to_standard_format()!r} leaves the calendar range: {e}"
            ) from e

    # =========================================================================
    # Ordinals
    # =========================================================================

    def _resolve_period(self, expr: TemporalExpression, reference: datetime, depth: int) -> _Period:
        """
        The period an anchor denotes.

        Only the year and month of the anchor matter; finer fields count as
        their minimum, so "February" resolved on a 31st is still a period.
        """
        self._check(expr, depth)
        scope = expr.period_scope

        if isinstance(expr, (PointDate, SimpleDateTime)):
            value = expr.value
            year = value.year if value.year is not None else reference.year
            month = value.month if value.month is not None else reference.month
            return _Period(year, month, scope)

        if isinstance(expr, RelativeOffset) and expr.unit in (Unit.MONTH, Unit.YEAR):
            if expr.anchor is None:
                start = date(reference.year, reference.month, 1)
            else:
                base = self._resolve_period(expr.anchor, reference, depth + 1)
                start = date(base.year, base.month, 1)
            try:
                shifted = add_calendar(start, **{_OFFSET_KWARGS[expr.unit]: expr.value})
            except (ValueError, OverflowError) as e:
                raise NotGregorianDateTime(
                    f"Offset {expr.to_standard_format()!r} leaves the calendar range: {e}"
                ) from e
            return _Period(shifted.year, shifted.month, scope)

        resolved = self._resolve(expr, reference, depth)
        return _Period(resolved.year, resolved.month, scope)

    def _resolve_ordinal(self, expr: OrdinalExpression, reference: datetime, depth: int) -> datetime:
        period = self._resolve_period(expr.anchor, reference, depth + 1)
        logger.debug("Counting %s %s within %s", expr.position, expr.unit_tag, period)

        if expr.date is not None:
            day = self._nth_weekday(period, expr.date.weekday, expr.position)
        elif expr.unit == OrdinalUnit.DAY:
            day = self._nth_day(period, expr.position)
        elif expr.unit == OrdinalUnit.WEEK:
            day = self._nth_weekday(period, self._settings.first_day_of_week, expr.position)
        elif expr.unit == OrdinalUnit.WEEKEND:
            day = self._nth_weekday(period, self._settings.weekend_start, expr.position)
        elif expr.unit == OrdinalUnit.MONTH:
            day = self._nth_month(period, expr.position)
        else:
            raise UnsupportedUnit(
                f"Cannot count {expr.unit_tag.lower()} units within {period}: "
                "no containing period is larger than a year"
            )

        return datetime.combine(day, time(), tzinfo=reference.tzinfo)

    @staticmethod
    def _out_of_period(position: Position, unit: str, period: _Period) -> NotGregorianDateTime:
        return NotGregorianDateTime(
            f"Invalid ordinal position ({position}) of {unit} for the reference period '{period}'"
        )

    def _nth_weekday(self, period: _Period, weekday: DayOfWeekType, position: Position) -> date:
        if position.is_last:
            # Every month and year holds each weekday at least once.
            day = period.last_day
            while day.weekday() != weekday.value:
                day -= ONE_DAY
            return day

        day = period.first_day
        count = 0
        while True:
            if day.weekday() == weekday.value:
                count += 1
                if count == position.count:
                    return day
            if day == period.last_day:
                raise self._out_of_period(position, weekday.name.capitalize(), period)
            day += ONE_DAY

    def _nth_day(self, period: _Period, position: Position) -> date:
        if position.is_last:
            return period.last_day
        if position.count > period.length:
            raise self._out_of_period(position, "day", period)
        return period.first_day + (position.count - 1) * ONE_DAY

    def _nth_month(self, period: _Period, position: Position) -> date:
        if period.scope != Scope.YEAR:
            raise UnsupportedUnit(f"Cannot count months within the month {period}")
        if position.is_last:
            return date(period.year, 12, 1)
        if position.count > 12:
            raise self._out_of_period(position, "month", period)
        return date(period.year, position.count, 1)


# =============================================================================
# Public API
# =============================================================================

def get_reference(reference=None, settings=None) -> datetime:
    """
    Normalize a caller's reference instant, defaulting to now.

    Accepts a ``datetime``, a ``date`` (midnight) or a complete
    ``CalendarDateTime``. Without one, ``RELATIVE_BASE`` is used if set,
    otherwise the current time in ``TIMEZONE``.
    """
    if reference is None:
        if settings.RELATIVE_BASE is not None:
            return settings.RELATIVE_BASE

        if settings.TIMEZONE is None or "local" in settings.TIMEZONE.lower():
            timezone = get_localzone()
        else:
            timezone = tz.gettz(settings.TIMEZONE)

        now = datetime.now(timezone)
        if not settings.RETURN_AS_TIMEZONE_AWARE:
            now = now.replace(tzinfo=None)
        return now

    if isinstance(reference, datetime):
        return reference
    if isinstance(reference, date):
        return datetime.combine(reference, time())
    if isinstance(reference, CalendarDateTime):
        return reference.to_datetime()

    raise InvalidDateTime(f"Invalid reference instant: {reference!r}")


@apply_settings
def resolve(
    expr: TemporalExpression,
    reference: Optional[Union[datetime, date, CalendarDateTime]] = None,
    settings=None,
) -> datetime:
    """Resolve a temporal expression to an absolute datetime.

    :param expr:
        The expression tree to resolve.
    :type expr: :class:`timeresolver.expressions.TemporalExpression`

    :param reference:
        The instant unset fields and relative expressions are resolved
        against. Defaults to now (see :mod:`timeresolver.conf.Settings`).
    :type reference: datetime

    :param settings:
        Configure customized behavior using settings defined in :mod:`timeresolver.conf.Settings`.
    :type settings: dict

    :return: The absolute datetime the expression denotes. It carries the
        reference's tzinfo.
    :rtype: datetime

    :raises:
        ``InvalidPosition``, ``InvalidDateTime``, ``NotGregorianDateTime`` or
        ``UnsupportedUnit``, all subclasses of ``TemporalError``;
        ``SettingValidationError``: A provided setting is not valid.

    Example usage::

        >>> import timeresolver
        >>> from datetime import datetime
        >>> from timeresolver import OrdinalExpression, Ordinal, LAST, PointDate, DayOfWeekType

        # "the second Monday of August 2015"
        >>> monday = PointDate(weekday=DayOfWeekType.MONDAY)
        >>> august = PointDate(year=2015, month=8)
        >>> timeresolver.resolve(OrdinalExpression(Ordinal(2), monday, august), datetime(2015, 1, 1))
        datetime.datetime(2015, 8, 10, 0, 0)
        >>> timeresolver.resolve(OrdinalExpression(LAST, monday, august), datetime(2015, 1, 1))
        datetime.datetime(2015, 8, 31, 0, 0)

        # Unset fields are copied from the reference, field by field
        >>> timeresolver.resolve(PointDate(month=8, day=7), datetime(2015, 9, 1))
        datetime.datetime(2015, 8, 7, 0, 0)
    """
    reference = get_reference(reference, settings)
    return Resolver(settings).resolve(expr, reference)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one expression: a value or a classified error."""
    expression: TemporalExpression
    value: Optional[datetime] = None
    error: Optional[TemporalError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@apply_settings
def resolve_batch(
    expressions: Iterable[TemporalExpression],
    reference: Optional[Union[datetime, date, CalendarDateTime]] = None,
    settings=None,
) -> List[Resolution]:
    """
    Resolve many expressions against one reference instant.

    Failures are returned as values on each ``Resolution`` rather than
    raised, so one bad expression does not hide the others.
    """
    reference = get_reference(reference, settings)
    resolver = Resolver(settings)

    results = []
    for expr in expressions:
        try:
            value = resolver.resolve(expr, reference)
        except TemporalError as e:
            logger.debug("Failed to resolve %s: %s", type(expr).__name__, e)
            results.append(Resolution(expression=expr, error=e))
        else:
            results.append(Resolution(expression=expr, value=value))
    return results
