"""Parsing of relative and absolute times, and timestamp formatting."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from fractions import Fraction

YEAR_MONTH_DAY = "2006-01-02"
YEAR_MONTH_DAY_HOUR = "2006-01-02T15Z07:00"
YEAR_MONTH_DAY_HOUR_MINUTE = "2006-01-02T15:04Z07:00"
RFC3339 = "2006-01-02T15:04:05Z07:00"
RFC3339_MILLI = "2006-01-02T15:04:05.999Z07:00"
RFC3339_MICRO = "2006-01-02T15:04:05.999999Z07:00"
RFC3339_NANO = "2006-01-02T15:04:05.999999999Z07:00"
RFC1123Z = "Mon, 02 Jan 2006 15:04:05 -0700"
STAMP_MILLI = "Jan _2 15:04:05.000"

FORMAT_NAMES = [
    "YearMonthDay",
    "YearMonthDayHour",
    "YearMonthDayHourMinute",
    "StampMilli",
    "RFC3339",
    "RFC3339Milli",
    "RFC3339Micro",
    "RFC3339Nano",
    "RFC1123Z",
]

_LAYOUTS_BY_NAME = {
    "yearmonthday": YEAR_MONTH_DAY,
    "yearmonthdayhour": YEAR_MONTH_DAY_HOUR,
    "yearmonthdayhourminute": YEAR_MONTH_DAY_HOUR_MINUTE,
    "rfc3339": RFC3339,
    "rfc3339milli": RFC3339_MILLI,
    "rfc3339micro": RFC3339_MICRO,
    "rfc3339nano": RFC3339_NANO,
    "rfc1123z": RFC1123Z,
}

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_UNITS = {
    "ns": 1, "us": 10**3, "\u00b5s": 10**3, "\u03bcs": 10**3,
    "ms": 10**6, "s": 10**9, "m": 60 * 10**9, "h": 3600 * 10**9,
}
_DURATION_PART_RE = re.compile(r"(\d+\.?\d*|\.\d+)([^\d.]+)")

_ISO_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})"
    r"(?:T(\d{2})(?::(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?)?"
    r"(Z|[+-]\d{2}:\d{2}))?"
)
_RFC1123Z_RE = re.compile(
    r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun), (\d{2}) ([A-Z][a-z]{2}) (\d{4}) "
    r"(\d{2}):(\d{2}):(\d{2}) ([+-]\d{2})(\d{2})"
)


class TimeParseError(ValueError):
    """Raised when a string is neither a duration nor a supported time."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as '300ms', '-1.5h' or '2h45m'."""
    negative = text[:1] == "-"
    body = text[1:] if text[:1] in ("-", "+") else text
    if body == "0":
        return timedelta(0)
    parts = _DURATION_PART_RE.findall(body)
    if not body or "".join(n + u for n, u in parts) != body:
        raise TimeParseError(f"invalid duration {text!r}")
    try:
        total = sum(Fraction(number) * _UNITS[unit] for number, unit in parts)
    except KeyError:
        raise TimeParseError(f"unknown unit in duration {text!r}") from None
    nanoseconds = int(total)
    if nanoseconds > (2**63 if negative else 2**63 - 1):
        raise TimeParseError(f"invalid duration {text!r}")
    if negative:
        nanoseconds = -nanoseconds
    return timedelta(microseconds=int(Fraction(nanoseconds, 1000)))


def _zone_from(text: str, minutes: str) -> timezone:
    hours = int(text)
    offset = timedelta(hours=abs(hours), minutes=int(minutes))
    return timezone(-offset if text.startswith("-") else offset)


def _parse_absolute(text: str) -> datetime | None:
    if match := _ISO_RE.fullmatch(text):
        year, month, day, hour, minute, second, frac, zone = match.groups()
        tz = timezone.utc if zone in (None, "Z") else _zone_from(zone[:3], zone[4:])
        micro = int(frac.ljust(9, "0")[:6]) if frac else 0
        fields = (year, month, day, hour or 0, minute or 0, second or 0)
    elif match := _RFC1123Z_RE.fullmatch(text):
        day, month, year, hour, minute, second, off_h, off_m = match.groups()
        if month not in _MONTHS:
            return None
        tz, micro = _zone_from(off_h, off_m), 0
        fields = (year, _MONTHS.index(month) + 1, day, hour, minute, second)
    else:
        return None
    try:
        return datetime(*map(int, fields), micro, tzinfo=tz)
    except ValueError:
        return None


def from_string(text: str, now: datetime | None = None) -> datetime:
    """Convert a duration in the past or an RFC3339-like time to a datetime."""
    try:
        delta = parse_duration(text)
    except TimeParseError:
        moment = _parse_absolute(text)
        if moment is None:
            raise TimeParseError(f"failed to convert {text} to time") from None
        return moment
    return (now or datetime.now(timezone.utc)) - delta


def format_name_to_layout(name: str) -> str:
    """Return the layout for a time format name; unknown names give StampMilli."""
    return _LAYOUTS_BY_NAME.get(name.lower(), STAMP_MILLI)


def _zone(moment: datetime, sep: str = ":", utc_as_z: bool = True) -> str:
    offset = moment.utcoffset() or timedelta(0)
    if utc_as_z and not offset:
        return "Z"
    minutes = abs(int(offset.total_seconds())) // 60
    sign = "-" if offset < timedelta(0) else "+"
    return f"{sign}{minutes // 60:02d}{sep}{minutes % 60:02d}"


def format_time(moment: datetime, layout: str) -> str:
    """Format ``moment`` with one of the layouts defined in this module."""
    m = moment
    date = f"{m.year:04d}-{m.month:02d}-{m.day:02d}"
    clock = f"{m.hour:02d}:{m.minute:02d}:{m.second:02d}"
    digits = f"{m.microsecond:06d}000"

    def frac(count: int, trim: bool = True) -> str:
        text = digits[:count].rstrip("0") if trim else digits[:count]
        return f".{text}" if text else ""

    zone = _zone(m)
    layouts = {
        YEAR_MONTH_DAY: date,
        YEAR_MONTH_DAY_HOUR: f"{date}T{m.hour:02d}{zone}",
        YEAR_MONTH_DAY_HOUR_MINUTE: f"{date}T{m.hour:02d}:{m.minute:02d}{zone}",
        RFC3339: f"{date}T{clock}{zone}",
        RFC3339_MILLI: f"{date}T{clock}{frac(3)}{zone}",
        RFC3339_MICRO: f"{date}T{clock}{frac(6)}{zone}",
        RFC3339_NANO: f"{date}T{clock}{frac(9)}{zone}",
        RFC1123Z: (
            f"{_WEEKDAYS[m.weekday()]}, {m.day:02d} {_MONTHS[m.month - 1]} "
            f"{m.year:04d} {clock} {_zone(m, '', False)}"
        ),
        STAMP_MILLI: f"{_MONTHS[m.month - 1]} {m.day:>2} {clock}{frac(3, False)}",
    }
    try:
        return layouts[layout]
    except KeyError:
        raise ValueError(f"unsupported time layout: {layout!r}") from None