import calendar
from datetime import UTC, datetime, timedelta

# Selectable years; keeps month bounds and navigation inside datetime's range
MIN_YEAR = 1900
MAX_YEAR = 9998

# Real UTC offsets stay within 14 hours
MAX_OFFSET_MINUTES = 14 * 60


def parse_offset(timezone_offset_str: str | None) -> int:
    """Minutes behind UTC as sent by the browser (Date.getTimezoneOffset)."""
    if timezone_offset_str and timezone_offset_str.lstrip("-").isdigit():
        return max(-MAX_OFFSET_MINUTES, min(MAX_OFFSET_MINUTES, int(timezone_offset_str)))
    return 0


def user_now(offset_minutes: int = 0) -> datetime:
    return datetime.now(UTC) - timedelta(minutes=offset_minutes)


def resolve_month(year: int | None, month: int | None, offset_minutes: int = 0) -> tuple[int, int]:
    """Falls back to the user's current month for missing parts."""
    now = user_now(offset_minutes)
    return (year or now.year, month or now.month)


def shift_month(year: int, month: int, direction: str) -> tuple[int, int]:
    step = 1 if direction == "next" else -1
    index = year * 12 + (month - 1) + step
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int, offset_minutes: int = 0) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar month on the user's clock."""
    next_year, next_month = shift_month(year, month, "next")
    start = datetime(year, month, 1, tzinfo=UTC) + timedelta(minutes=offset_minutes)
    end = datetime(next_year, next_month, 1, tzinfo=UTC) + timedelta(minutes=offset_minutes)
    return start, end


def date_in_month(year: int, month: int, offset_minutes: int = 0) -> datetime:
    """
    Timestamp for a record created while looking at (year, month).

    In the current month that is simply now; for another month the current
    day and time are moved into it, clamping the day to the month's length.
    """
    now_utc = datetime.now(UTC)
    local = now_utc - timedelta(minutes=offset_minutes)
    if (local.year, local.month) == (year, month):
        return now_utc

    day = min(local.day, calendar.monthrange(year, month)[1])
    moved = local.replace(year=year, month=month, day=day)
    return moved + timedelta(minutes=offset_minutes)
