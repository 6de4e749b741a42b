"""
English word tables for ordinal positions, weekdays and units.

Used to build positions from words ("second", "3rd", "last") and to read
unit and weekday tags from exported records, where both names and numbers
are accepted.
"""

from typing import Optional

import regex as re

from .gregorian import DayOfWeekType


ORDINAL_WORDS = {
    'first': 1,
    'second': 2,
    'third': 3,
    'fourth': 4,
    'fifth': 5,
    'sixth': 6,
    'seventh': 7,
    'eighth': 8,
    'ninth': 9,
    'tenth': 10,
    'eleventh': 11,
    'twelfth': 12,
}

LAST_WORDS = {'last', 'final'}

# "1st", "2nd", "23rd", "n. 4", "4"
ORDINAL_NUMBER_PATTERN = re.compile(r"^(?:n\.\s*)?(\d+)(?:st|nd|rd|th)?$", re.I)
ORDINAL_WORD_PATTERN = re.compile(
    r"^(?:the\s+)?(%s)$" % "|".join(sorted(ORDINAL_WORDS.keys() | LAST_WORDS, key=len, reverse=True)),
    re.I,
)

WEEKDAY_NAMES = {
    'monday': DayOfWeekType.MONDAY,
    'tuesday': DayOfWeekType.TUESDAY,
    'wednesday': DayOfWeekType.WEDNESDAY,
    'thursday': DayOfWeekType.THURSDAY,
    'friday': DayOfWeekType.FRIDAY,
    'saturday': DayOfWeekType.SATURDAY,
    'sunday': DayOfWeekType.SUNDAY,
    'mon': DayOfWeekType.MONDAY,
    'tue': DayOfWeekType.TUESDAY,
    'wed': DayOfWeekType.WEDNESDAY,
    'thu': DayOfWeekType.THURSDAY,
    'fri': DayOfWeekType.FRIDAY,
    'sat': DayOfWeekType.SATURDAY,
    'sun': DayOfWeekType.SUNDAY,
}

# Plural and singular forms map onto the canonical unit tag.
UNIT_PATTERN = re.compile(
    r"^(second|minute|hour|day|week|weekend|month|year|date)s?$", re.I
)


def parse_ordinal_count(text: str) -> Optional[int]:
    """
    Return the signed ordinal count a word denotes, or None if unknown.

    Example:
        parse_ordinal_count("second") -> 2
        parse_ordinal_count("23rd")   -> 23
        parse_ordinal_count("last")   -> -1
    """
    text = text.strip()
    match = ORDINAL_NUMBER_PATTERN.match(text)
    if match:
        return int(match.group(1))
    match = ORDINAL_WORD_PATTERN.match(text)
    if match:
        word = match.group(1).lower()
        if word in LAST_WORDS:
            return -1
        return ORDINAL_WORDS[word]
    return None


def parse_weekday(text: str) -> Optional[DayOfWeekType]:
    return WEEKDAY_NAMES.get(text.strip().lower().rstrip('.'))


def parse_unit_tag(text: str) -> Optional[str]:
    """Normalize a unit word ("Weeks", "day") to its lower-case tag."""
    match = UNIT_PATTERN.match(text.strip())
    if not match:
        return None
    return match.group(1).lower()
