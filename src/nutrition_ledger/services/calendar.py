"""Calendar resolution between local days and UTC storage keys.

A day is always the user's local calendar date. Its storage key (the day
anchor) is that date at 00:00 UTC, so point queries and ranges select the same
rows whatever the timezone. The UTC window reports where the local day starts
and ends under the zone's rules, including daylight-saving transitions.
"""

import re
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nutrition_ledger.domain.errors import InvalidDate, InvalidTimezone
from nutrition_ledger.domain.stats import DayWindow

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_END_OF_DAY = time(23, 59, 59, 999000)


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(tz=UTC)


def load_timezone(timezone_name: str) -> ZoneInfo:
    """Return the zone for an IANA name or raise InvalidTimezone."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(timezone_name) from exc


def parse_local_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD calendar date."""
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        raise InvalidDate(f"Date must be YYYY-MM-DD: {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDate(f"Invalid calendar date: {value!r}") from exc


def today_in(timezone_name: str, now: datetime | None = None) -> date:
    """Return the local calendar date in a timezone."""
    tz = load_timezone(timezone_name)
    return (now or utc_now()).astimezone(tz).date()


def resolve_day(
    date_string: str | None, timezone_name: str, now: datetime | None = None
) -> DayWindow:
    """Resolve a local date (or today) into its UTC window."""
    tz = load_timezone(timezone_name)
    if date_string is not None:
        local_date = parse_local_date(date_string)
    else:
        local_date = (now or utc_now()).astimezone(tz).date()
    return window_for(local_date, tz)


def window_for(local_date: date, tz: ZoneInfo) -> DayWindow:
    """Return the UTC bounds of a local date in a zone."""
    start = datetime.combine(local_date, time.min, tzinfo=tz)
    end = datetime.combine(local_date, _END_OF_DAY, tzinfo=tz)
    return DayWindow(
        local_date=local_date,
        utc_start=start.astimezone(UTC),
        utc_end=end.astimezone(UTC),
    )


def anchor(value: str | date) -> datetime:
    """Return the UTC-midnight storage key for a local date."""
    local_date = parse_local_date(value) if isinstance(value, str) else value
    return datetime(local_date.year, local_date.month, local_date.day, tzinfo=UTC)


def anchor_date(day_anchor: datetime) -> date:
    """Return the local calendar date a day anchor stands for."""
    return day_anchor.astimezone(UTC).date()


def days_between(start: date, end: date) -> list[date]:
    """Enumerate calendar dates from start to end inclusive."""
    if end < start:
        raise InvalidDate(f"End date {end} is before start date {start}")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]
