"""
Time & money value helpers shared by the session, rollup and payroll services.

Money is summed in integer minor units (paise / cents); a ``Decimal`` with at
most two fractional digits is the only accepted major-unit representation.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

MINOR_UNITS_PER_MAJOR = 100
_MINOR_EXPONENT = -2


# ── Time ────────────────────────────────────────────────────────────
def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, floored. Negative if reversed."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return int(seconds // 60)


def date_key(value: date | datetime | str) -> date:
    """Normalise a calendar-day key: date, timestamp or ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot derive a date key from {type(value).__name__}")


def date_range(start: date, end: date) -> list[date]:
    """Every calendar day from ``start`` to ``end`` inclusive, oldest first."""
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def last_n_days(n: int, *, today: date) -> list[date]:
    """The ``n`` days ending on ``today``, oldest first."""
    if n <= 0:
        return []
    return date_range(today - timedelta(days=n - 1), today)


def iso_week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def format_duration(minutes: int | None) -> str:
    """Render worked minutes as ``"8h 9m"``; ``"--"`` when unknown."""
    if minutes is None:
        return "--"
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours}h {mins}m"


# ── Money ───────────────────────────────────────────────────────────
def to_minor_units(amount: Decimal | int | str) -> int:
    """Convert a major-unit amount to integer minor units without rounding.

    Raises ``ValueError`` for floats, non-numeric input or more than two
    fractional digits.
    """
    if isinstance(amount, float):
        raise ValueError("Monetary amounts must not be floats")
    try:
        value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    except InvalidOperation as exc:
        raise ValueError(f"Invalid monetary amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid monetary amount: {amount!r}")
    scaled = value * MINOR_UNITS_PER_MAJOR
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Monetary amount {amount!r} has more than two decimal places")
    return int(scaled)


def from_minor_units(units: int) -> Decimal:
    """Integer minor units back to a two-place ``Decimal``."""
    return Decimal(int(units)).scaleb(_MINOR_EXPONENT)


def sum_minor_units(amounts: Iterable[Decimal | int | str]) -> int:
    return sum((to_minor_units(a) for a in amounts), 0)
