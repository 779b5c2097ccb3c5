"""
Lead-time and advance-window checks for session bookings.

Every check returns a user-facing reason string (or None) instead of
raising; callers use it to disable slots or explain a refusal.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .availability import parse_time
from .types import SessionType, SlotAvailability, TimeSlot, TimeValue, to_utc


def combine(day: date, time_of_day: TimeValue, now: datetime) -> datetime:
    """Combine a date and wall-clock time in ``now``'s timezone."""
    return datetime.combine(day, parse_time(time_of_day), tzinfo=now.tzinfo)


def _time_until(start_at: datetime, now: datetime) -> timedelta:
    return to_utc(start_at) - to_utc(now)


def _plural(value: float, unit: str) -> str:
    number = int(value) if float(value).is_integer() else value
    return f"{number} {unit}" if number == 1 else f"{number} {unit}s"


def booking_denial_reason(
    day: date,
    time_of_day: TimeValue,
    session_type: SessionType,
    now: datetime
) -> Optional[str]:
    """
    Explain why a candidate start may not be booked, or None if it may.

    Both bounds are evaluated; if both fail both reasons are reported.
    """
    restrictions = session_type.restrictions
    gap = _time_until(combine(day, time_of_day, now), now)
    reasons = []

    if gap < timedelta(hours=restrictions.min_lead_hours):
        reasons.append(
            "Sessions must be booked at least "
            f"{_plural(restrictions.min_lead_hours, 'hour')} in advance."
        )
    if gap > timedelta(days=restrictions.max_advance_days):
        reasons.append(
            "Sessions cannot be booked more than "
            f"{_plural(restrictions.max_advance_days, 'day')} in advance."
        )

    return ' '.join(reasons) or None


def is_booking_allowed(
    day: date,
    time_of_day: TimeValue,
    session_type: SessionType,
    now: datetime
) -> bool:
    return booking_denial_reason(day, time_of_day, session_type, now) is None


def annotate_slots(
    slots: Iterable[TimeSlot],
    session_type: SessionType,
    now: datetime
) -> List[SlotAvailability]:
    """Pair each projected slot with whether it can be booked right now."""
    annotated = []
    for slot in slots:
        reason = booking_denial_reason(slot.date, slot.start_time, session_type, now)
        annotated.append(SlotAvailability(slot=slot, allowed=reason is None, reason=reason))
    return annotated


def cancellation_denial_reason(
    start_at: datetime,
    session_type: SessionType,
    now: datetime
) -> Optional[str]:
    hours = session_type.restrictions.min_cancel_hours
    remaining = _time_until(start_at, now)
    if remaining <= timedelta(0):
        return "Session has already started."
    if remaining < timedelta(hours=hours):
        return (
            "Cancellations must be made at least "
            f"{_plural(hours, 'hour')} in advance."
        )
    return None


def reschedule_denial_reason(
    start_at: datetime,
    session_type: SessionType,
    now: datetime
) -> Optional[str]:
    """Check the original start against the reschedule cut-off."""
    hours = session_type.restrictions.min_reschedule_hours
    remaining = _time_until(start_at, now)
    if remaining <= timedelta(0):
        return "Session has already started."
    if remaining < timedelta(hours=hours):
        return (
            "Reschedule requests must be made at least "
            f"{_plural(hours, 'hour')} before the original session."
        )
    return None
