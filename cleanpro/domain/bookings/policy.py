"""Booking policy - date/time rules shared by the booking validator and the pre-submit check

Everything in here is a pure function of its arguments so the same rules can be
served to the browser (``/api/bookings/policy``, ``/api/bookings/precheck``) and
applied authoritatively when a booking is created.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union

DEFAULT_BOOKING_TIME = "09:00"
DEFAULT_SAME_DAY_CUTOFF = "12:00"

# Statuses ignored by the duplicate-booking check
TERMINAL_EXCLUDED_STATUSES = frozenset({"cancelled", "rejected"})

BOOKING_STATUSES = ("requested", "confirmed", "in-progress", "completed", "cancelled", "rejected")

BOOKING_TRANSITIONS: dict[str, frozenset] = {
    "requested": frozenset({"confirmed", "cancelled", "rejected"}),
    "confirmed": frozenset({"in-progress", "cancelled", "rejected"}),
    "in-progress": frozenset({"completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "rejected": frozenset(),
}

CUSTOMER_CANCELLABLE_STATUSES = frozenset({"requested", "confirmed"})

QUOTATION_STATUSES = ("pending", "accepted", "rejected")

# Grouping keys for booking analytics
ANALYTICS_PERIODS = ("daily", "weekly", "monthly")

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_POSTAL_CODE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 \-]{1,9}$")

PAST_DATE_MESSAGE = "Cannot book for past dates. Please select today or a future date."
SAME_DAY_CUTOFF_MESSAGE = (
    "Same-day bookings must be made before {cutoff}. Please select tomorrow or a future date."
)
TIME_PASSED_MESSAGE = "Selected time has already passed. Please choose a future time."


def normalize_date(value: Union[str, date, datetime, None]) -> str:
    """Parse a calendar date and return it as ``YYYY-MM-DD``.

    Accepts ``date``/``datetime`` objects, ISO dates and ISO datetimes (the date
    part is kept as written, no time zone shifting). Raises ValueError when the
    value is not a valid calendar date.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date is required")

    raw = value.strip()
    if "T" in raw:
        raw = raw.split("T", 1)[0]
    elif " " in raw:
        raw = raw.split(" ", 1)[0]
    return date.fromisoformat(raw).isoformat()


def today_iso(now: Optional[datetime] = None) -> str:
    """Current UTC calendar day as ``YYYY-MM-DD``"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date().isoformat()


def is_past_date(date_iso: str, today: Optional[str] = None) -> bool:
    # Both sides are normalized YYYY-MM-DD strings, so lexical order is calendar order
    return date_iso < (today or today_iso())


def parse_time(value: Optional[str], default: str = DEFAULT_BOOKING_TIME) -> str:
    """Return ``HH:MM`` for a clock time, or the default when blank. Raises ValueError."""
    if value is None or not str(value).strip():
        return default
    match = _TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid time: {value}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def _clock(hhmm: str) -> time:
    hours, minutes = parse_time(hhmm).split(":")
    return time(int(hours), int(minutes))


def same_day_cutoff_violation(date_iso: str, now: datetime, cutoff: str = DEFAULT_SAME_DAY_CUTOFF) -> bool:
    """True when ``date_iso`` is today (per ``now``) and the cutoff has been reached"""
    if date_iso != now.date().isoformat():
        return False
    return now.time().replace(second=0, microsecond=0) >= _clock(cutoff)


def time_already_passed(date_iso: str, time_str: Optional[str], now: datetime) -> bool:
    """True when a same-day booking picks a clock time that is not later than ``now``"""
    if not time_str or date_iso != now.date().isoformat():
        return False
    return _clock(time_str) <= now.time().replace(second=0, microsecond=0)


def clean_optional(value) -> Optional[str]:
    """Trim a free-text value; blank becomes None"""
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def compose_address(street: str, city: str, state: str, postal_code: str) -> str:
    return f"{street.strip()}, {city.strip()}, {state.strip()} {postal_code.strip()}"


def can_transition(current: str, new: str) -> bool:
    return new in BOOKING_TRANSITIONS.get(current, frozenset())


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(_EMAIL_PATTERN.match(value.strip()))


def is_valid_postal_code(value: Optional[str]) -> bool:
    return bool(value) and bool(_POSTAL_CODE_PATTERN.match(value.strip()))


def precheck_errors(
    *,
    service_id,
    date_value,
    time_value: Optional[str],
    street: Optional[str],
    city: Optional[str],
    state: Optional[str],
    postal_code: Optional[str],
    email: Optional[str] = None,
    now: Optional[datetime] = None,
    cutoff: str = DEFAULT_SAME_DAY_CUTOFF,
) -> list[str]:
    """Run the pre-submit checks the booking form performs and collect every message.

    Unlike the server validator this does not short-circuit: the form shows all
    problems at once. ``now`` is the local clock of the person booking.
    """
    now = now or datetime.now()
    errors: list[str] = []

    if service_id in (None, ""):
        errors.append("Please select a service.")

    address_parts = [street, city, state, postal_code]
    if any(clean_optional(part) is None for part in address_parts):
        errors.append("Please provide a complete address (street, city, state and postal code).")
    elif not is_valid_postal_code(postal_code):
        errors.append("Please enter a valid postal code.")

    if email is not None and not is_valid_email(email):
        errors.append("Please enter a valid email address.")

    if date_value in (None, ""):
        errors.append("Please select a booking date.")
        return errors

    try:
        date_iso = normalize_date(date_value)
    except ValueError:
        errors.append("Please enter a valid booking date.")
        return errors

    try:
        time_str = parse_time(time_value, default="") or None
    except ValueError:
        errors.append("Please enter a valid time (HH:MM).")
        time_str = None

    if date_iso < now.date().isoformat():
        errors.append(PAST_DATE_MESSAGE)
    elif same_day_cutoff_violation(date_iso, now, cutoff):
        errors.append(SAME_DAY_CUTOFF_MESSAGE.format(cutoff=cutoff))
    elif time_already_passed(date_iso, time_str, now):
        errors.append(TIME_PASSED_MESSAGE)

    return errors


def analytics_period_key(booking_date: date, period: str) -> str:
    """Bucket label for a booking date: 2030-06-01 (daily), 2030-W22 (weekly, ISO week) or 2030-06 (monthly)"""
    if period == "daily":
        return booking_date.isoformat()
    if period == "weekly":
        year, week, _ = booking_date.isocalendar()
        return f"{year}-W{week:02d}"
    if period == "monthly":
        return booking_date.strftime("%Y-%m")
    raise ValueError(f"unknown analytics period: {period}")
