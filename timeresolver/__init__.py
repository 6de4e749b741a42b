__version__ = "1.0.0"

from .conf import apply_settings, Settings, SettingValidationError

# Re-export expression types for convenience
from .expressions import (
    TemporalExpression,
    # Variants
    PointDate, SimpleDateTime, RelativeOffset, OrdinalExpression,
    # Positions
    Position, Ordinal, Last, LAST, encode,
    # Enums
    Unit, OrdinalUnit, Scope,
)
from .gregorian import (
    CalendarDateTime, DayOfWeekType,
    is_leap_year, days_in_month, last_day_of_month, day_of_week, add_calendar,
)
from .errors import (
    TemporalError, InvalidPosition, InvalidDateTime, NotGregorianDateTime, UnsupportedUnit,
)

# Resolution entry points
from .resolver import Resolver, Resolution, resolve, resolve_batch, get_reference

# Presentation
from .presentation import render, export, hydrate, dumps, loads
