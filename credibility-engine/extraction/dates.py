"""
Date parsing and calendar arithmetic shared by the extractor, detectors and
the blog aggregator. All returned datetimes are timezone-aware (UTC).
"""

import calendar
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

_TEXT_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d.%m.%Y",
    "%m/%d/%Y",
)

# Unix timestamps above this are taken to be milliseconds
_MS_THRESHOLD = 10_000_000_000


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value) -> Optional[datetime]:
    """
    Best-effort parse of a schema/meta/time date value.
    Returns None for anything that is not a recognizable date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        ts = float(value)
        if ts > _MS_THRESHOLD:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _as_utc(datetime.fromisoformat(iso))
    except ValueError:
        pass

    cleaned = re.sub(r"(\d)(st|nd|rd|th)\b", r"\1", text)
    for fmt in _TEXT_FORMATS:
        try:
            return _as_utc(datetime.strptime(cleaned, fmt))
        except ValueError:
            continue

    # RFC 2822 / HTTP dates, e.g. "last-modified" meta values
    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def first_date(obj: Mapping[str, Any], fields: Sequence[str]) -> Optional[Tuple[datetime, str]]:
    """(date, field) for the first field that parses; an unparseable value does not hide the next one."""
    for name in fields:
        parsed = parse_date(obj.get(name))
        if parsed is not None:
            return parsed, name
    return None


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month's length."""
    index = dt.month - 1 + months
    year = dt.year + index // 12
    month = index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def months_between(start: datetime, end: datetime) -> float:
    """
    Calendar-aware month distance: whole months first, then the remainder as a
    fraction of the following month. Jan 15 -> Mar 15 is exactly 2.0.
    """
    if end < start:
        return -months_between(end, start)

    whole = (end.year - start.year) * 12 + (end.month - start.month)
    anchor = add_months(start, whole)
    if anchor > end:
        whole -= 1
        anchor = add_months(start, whole)

    next_anchor = add_months(start, whole + 1)
    month_length = (next_anchor - anchor).total_seconds()
    remainder = (end - anchor).total_seconds() / month_length if month_length else 0.0
    return whole + remainder
