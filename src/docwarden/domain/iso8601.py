"""ISO 8601 date, time and time zone parsing, validation and ordering.

Deliberately independent of :mod:`datetime` for parsing and arithmetic:
documents may carry extended years (``+287396-12-31``, ``-283457-01-01``)
and the end-of-day form ``24:00``, neither of which the standard library
models. Every instant is reduced to an integer count of milliseconds since
the Unix epoch using proleptic Gregorian day counts, so offset adjustments
carry across day, month and year boundaries without special cases.

Comparators return a negative, zero or positive ``int``, or ``None`` when
either operand cannot be interpreted. ``None`` is never "less than" and
never "equal": callers treat it as "no ordering".
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime

MIN_EXTENDED_YEAR = -283457
MAX_EXTENDED_YEAR = 287396

MS_PER_MINUTE = 60_000
MS_PER_DAY = 86_400_000

_DATE = r"(?P<year>[+-]\d{6}|\d{4})(?:-(?P<month>\d{2})(?:-(?P<day>\d{2}))?)?"
_TIME = r"(?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.(?P<fraction>\d{1,3}))?)?"
_ZONE = r"(?P<zone>Z|(?P<zone_sign>[+-])(?P<zone_hour>\d{2}):?(?P<zone_minute>\d{2}))"

_DATE_RE = re.compile(rf"^{_DATE}$", re.ASCII)
_TIME_RE = re.compile(rf"^{_TIME}$", re.ASCII)
_ZONE_RE = re.compile(rf"^{_ZONE}$", re.ASCII)
_DATETIME_RE = re.compile(rf"^{_DATE}(?:T{_TIME}{_ZONE}?)?$", re.ASCII)


@dataclass(frozen=True)
class CalendarDate:
    year: int
    month: int
    day: int


@dataclass(frozen=True)
class TimeOfDay:
    hour: int
    minute: int
    second: int
    millisecond: int

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.hour, self.minute, self.second, self.millisecond)

    @property
    def total_milliseconds(self) -> int:
        return ((self.hour * 60 + self.minute) * 60 + self.second) * 1000 + self.millisecond


# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------


def is_leap_year(year: int) -> bool:
    """Proleptic Gregorian leap year rule (year 0 is a leap year)."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    if month in (4, 6, 9, 11):
        return 30
    return 31


def days_from_civil(year: int, month: int, day: int) -> int:
    """Number of days between 1970-01-01 and the given proleptic Gregorian date."""
    year -= month <= 2
    era = year // 400
    year_of_era = year - era * 400
    shifted_month = month - 3 if month > 2 else month + 9
    day_of_year = (153 * shifted_month + 2) // 5 + day - 1
    day_of_era = year_of_era * 365 + year_of_era // 4 - year_of_era // 100 + day_of_year
    return era * 146097 + day_of_era - 719468


# ---------------------------------------------------------------------------
# Component parsing
# ---------------------------------------------------------------------------


def _parse_year(raw: str) -> int | None:
    if len(raw) == 4:
        return int(raw)
    if raw == "-000000":
        return None
    year = int(raw)
    if year < MIN_EXTENDED_YEAR or year > MAX_EXTENDED_YEAR:
        return None
    return year


def _date_from_groups(groups: dict[str, str | None]) -> CalendarDate | None:
    year = _parse_year(groups["year"] or "")
    if year is None:
        return None
    month = int(groups["month"]) if groups["month"] else 1
    day = int(groups["day"]) if groups["day"] else 1
    if not 1 <= month <= 12:
        return None
    if not 1 <= day <= days_in_month(year, month):
        return None
    return CalendarDate(year, month, day)


def _time_from_groups(groups: dict[str, str | None]) -> TimeOfDay | None:
    hour = int(groups["hour"] or 0)
    minute = int(groups["minute"] or 0)
    second = int(groups["second"]) if groups["second"] else 0
    # The fraction has a variable length; "5" means 500 ms
    fraction = groups["fraction"]
    millisecond = int(fraction.ljust(3, "0")) if fraction else 0

    if hour == 24:
        if minute or second or millisecond:
            return None
    elif hour > 23 or minute > 59 or second > 59:
        return None
    return TimeOfDay(hour, minute, second, millisecond)


def _zone_from_groups(groups: dict[str, str | None]) -> int | None:
    """UTC offset in minutes; ``None`` when the zone is malformed."""
    zone = groups["zone"]
    if zone == "Z":
        return 0
    hour = int(groups["zone_hour"] or 0)
    minute = int(groups["zone_minute"] or 0)
    if hour > 23 or minute > 59:
        return None
    sign = 1 if groups["zone_sign"] == "+" else -1
    return sign * (hour * 60 + minute)


def parse_date(value: str) -> CalendarDate | None:
    """Parse a date-only string (``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``)."""
    match = _DATE_RE.match(value)
    if match is None:
        return None
    return _date_from_groups(match.groupdict())


def parse_time(value: str) -> TimeOfDay | None:
    """Parse a time-only string (``hh:mm[:ss[.sss]]``)."""
    match = _TIME_RE.match(value)
    if match is None:
        return None
    return _time_from_groups(match.groupdict())


def timezone_offset_minutes(value: str) -> int | None:
    """Convert ``Z``, ``±hh:mm`` or ``±hhmm`` into minutes east of UTC."""
    match = _ZONE_RE.match(value)
    if match is None:
        return None
    return _zone_from_groups(match.groupdict())


def _parse_datetime_milliseconds(value: str) -> int | None:
    match = _DATETIME_RE.match(value)
    if match is None:
        return None
    groups = match.groupdict()

    calendar_date = _date_from_groups(groups)
    if calendar_date is None:
        return None

    offset_minutes = 0
    time_ms = 0
    if groups["hour"] is not None:
        time_of_day = _time_from_groups(groups)
        if time_of_day is None:
            return None
        time_ms = time_of_day.total_milliseconds
        if groups["zone"] is not None:
            zone_offset = _zone_from_groups(groups)
            if zone_offset is None:
                return None
            offset_minutes = zone_offset

    days = days_from_civil(calendar_date.year, calendar_date.month, calendar_date.day)
    return days * MS_PER_DAY + time_ms - offset_minutes * MS_PER_MINUTE


# ---------------------------------------------------------------------------
# Structural validators
# ---------------------------------------------------------------------------


def is_iso8601_datetime_string(value: object) -> bool:
    """A date with optional time and time zone components."""
    return isinstance(value, str) and _parse_datetime_milliseconds(value) is not None


def is_iso8601_date_string(value: object) -> bool:
    """A date with no time or time zone components."""
    return isinstance(value, str) and parse_date(value) is not None


def is_iso8601_time_string(value: object) -> bool:
    """A time of day with no date or time zone components."""
    return isinstance(value, str) and parse_time(value) is not None


def is_iso8601_timezone_string(value: object) -> bool:
    return isinstance(value, str) and timezone_offset_minutes(value) is not None


# ---------------------------------------------------------------------------
# Conversion and comparison
# ---------------------------------------------------------------------------


def to_epoch_milliseconds(value: object) -> int | None:
    """Convert a date-like value to milliseconds since the Unix epoch.

    Accepts ISO 8601 strings, :class:`datetime.datetime` (naive values are
    UTC), :class:`datetime.date` (midnight UTC) and finite numbers (already
    epoch milliseconds). Anything else yields ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        offset = value.utcoffset()
        offset_ms = int(offset.total_seconds() * 1000) if offset is not None else 0
        days = days_from_civil(value.year, value.month, value.day)
        time_ms = TimeOfDay(
            value.hour, value.minute, value.second, value.microsecond // 1000
        ).total_milliseconds
        return days * MS_PER_DAY + time_ms - offset_ms
    if isinstance(value, date):
        return days_from_civil(value.year, value.month, value.day) * MS_PER_DAY
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return math.floor(value)
    if isinstance(value, str):
        return _parse_datetime_milliseconds(value)
    return None


def _sign(difference: int) -> int:
    return (difference > 0) - (difference < 0)


def compare_dates(a: object, b: object) -> int | None:
    """Order two date/datetime representations by the instant they denote."""
    a_ms = to_epoch_milliseconds(a)
    b_ms = to_epoch_milliseconds(b)
    if a_ms is None or b_ms is None:
        return None
    return a_ms - b_ms


def compare_times(a: object, b: object) -> int | None:
    """Order two time-of-day strings."""
    if not isinstance(a, str) or not isinstance(b, str):
        return None
    a_time = parse_time(a)
    b_time = parse_time(b)
    if a_time is None or b_time is None:
        return None
    left, right = a_time.as_tuple(), b_time.as_tuple()
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def compare_timezones(a: object, b: object) -> int | None:
    """Order two time zone strings by their UTC offset."""
    if not isinstance(a, str) or not isinstance(b, str):
        return None
    a_offset = timezone_offset_minutes(a)
    b_offset = timezone_offset_minutes(b)
    if a_offset is None or b_offset is None:
        return None
    return _sign(a_offset - b_offset)
