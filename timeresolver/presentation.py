"""
Rendering and structured export of temporal expressions.

``export`` produces plain, order-stable mappings meant to be embedded in
larger per-sentence JSON documents; ``hydrate`` reads them back, so that

    resolve(hydrate(export(expr)), ref) == resolve(expr, ref)

``render`` produces the canonical display string used for diagnostics.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional

from .errors import InvalidDateTime
from .expressions import (
    DATE_UNIT_TAG, TemporalExpression, PointDate, SimpleDateTime, RelativeOffset,
    OrdinalExpression, OrdinalUnit, Scope, Unit, encode,
)
from .gregorian import CalendarDateTime, DayOfWeekType
from . import lexicon


def render(expr: TemporalExpression, resolved: Optional[datetime] = None) -> str:
    """
    Render an expression in its standard format.

    Ordinals render as "the POSITION UNIT of ANCHOR", e.g.
    "the n. 2 Monday of 2015-08-XX". When the resolved datetime is given it
    is appended: "... -> 2015-08-10T00:00:00".
    """
    if not isinstance(expr, TemporalExpression):
        raise InvalidDateTime(f"Not a temporal expression: {expr!r}")
    text = expr.to_standard_format()
    if resolved is not None:
        text += f" -> {resolved.isoformat()}"
    return text


def export(expr: TemporalExpression) -> Dict[str, Any]:
    """Export an expression (recursively) as a JSON-compatible mapping."""
    if not isinstance(expr, TemporalExpression):
        raise InvalidDateTime(f"Not a temporal expression: {expr!r}")
    return expr.to_json()


def dumps(expr: TemporalExpression, **kwargs) -> str:
    return json.dumps(export(expr), **kwargs)


def loads(text: str) -> TemporalExpression:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidDateTime(f"Invalid expression record: {e}") from e
    return hydrate(record)


# =============================================================================
# Hydration
# =============================================================================

def _require(record: Mapping, key: str) -> Any:
    try:
        return record[key]
    except KeyError:
        raise InvalidDateTime(
            f"Record of type {record.get('type')!r} is missing {key!r}"
        ) from None


def _span(record: Mapping) -> Dict[str, int]:
    return {
        "start_token": record.get("startToken", 0),
        "end_token": record.get("endToken", 0),
    }


def _scope(value) -> Optional[Scope]:
    if value is None:
        return None
    try:
        return Scope(str(value).lower())
    except ValueError:
        raise InvalidDateTime(f"Unknown scope: {value!r}") from None


def _weekday(value) -> Optional[DayOfWeekType]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return DayOfWeekType.from_iso(value)
    if isinstance(value, str):
        weekday = lexicon.parse_weekday(value)
        if weekday is not None:
            return weekday
    raise InvalidDateTime(f"Unknown weekday: {value!r}")


def _hydrate_date(record: Mapping) -> PointDate:
    return PointDate(
        year=record.get("year"),
        month=record.get("month"),
        day=record.get("day"),
        weekday=_weekday(record.get("weekDay")),
        scope=_scope(record.get("scope")),
        **_span(record),
    )


def _hydrate_date_time(record: Mapping) -> SimpleDateTime:
    value = CalendarDateTime(**{name: record.get(name) for name in CalendarDateTime.field_names()})
    return SimpleDateTime(value=value, scope=_scope(record.get("scope")), **_span(record))


def _hydrate_offset(record: Mapping) -> RelativeOffset:
    unit = _require(record, "unit")
    if not isinstance(unit, str):
        raise InvalidDateTime(f"Unknown offset unit: {unit!r}")
    anchor = record.get("anchor")
    return RelativeOffset(
        value=_require(record, "value"),
        unit=Unit.from_tag(unit),
        anchor=hydrate(anchor) if anchor is not None else None,
        scope=_scope(record.get("scope")),
        **_span(record),
    )


def _ordinal_unit(record: Mapping):
    tag = _require(record, "unit")
    name = lexicon.parse_unit_tag(tag) if isinstance(tag, str) else None

    if name == DATE_UNIT_TAG.lower():
        date = hydrate(_require(record, "date"))
        if not isinstance(date, PointDate):
            raise InvalidDateTime(f"The date of an ordinal must be a point date, got {date!r}")
        return date

    for unit in OrdinalUnit:
        if unit.value.lower() == name:
            return unit
    raise InvalidDateTime(f"Unknown ordinal unit: {tag!r}")


def _hydrate_ordinal(record: Mapping) -> OrdinalExpression:
    return OrdinalExpression(
        position=encode(_require(record, "position")),
        unit=_ordinal_unit(record),
        anchor=hydrate(_require(record, "anchor")),
        **_span(record),
    )


_HYDRATORS = {
    "date": _hydrate_date,
    "dateTime": _hydrate_date_time,
    "offset": _hydrate_offset,
    "ordinal": _hydrate_ordinal,
}


def hydrate(record: Mapping) -> TemporalExpression:
    """
    Build an expression from a record produced by ``export``.

    Records embedded by other producers may omit ``type`` on ordinals; a
    record with a ``position`` is then read as an ordinal.

    Raises:
        InvalidDateTime: if the record is malformed
        InvalidPosition: if the position count is invalid
    """
    if not isinstance(record, Mapping):
        raise InvalidDateTime(f"Expression record must be a mapping, got {type(record).__name__}")

    kind = record.get("type")
    if kind is None and "position" in record:
        kind = "ordinal"

    hydrator = _HYDRATORS.get(kind)
    if hydrator is None:
        raise InvalidDateTime(f"Unknown expression type: {kind!r}")
    return hydrator(record)
