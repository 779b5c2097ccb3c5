"""
Interval classification of instances against an explicit "now".

Nothing here reads the system clock; polling callers re-invoke these
functions with a fresh instant on every tick.
"""

from datetime import datetime, timedelta
from typing import Iterable, List

from .types import (
    DEFAULT_GRACE_MINUTES,
    DEFAULT_JOIN_LEAD_MINUTES,
    EventInstance,
    IntervalState,
    to_utc,
)


def classify(
    instance: EventInstance,
    now: datetime,
    grace_minutes: int = DEFAULT_GRACE_MINUTES
) -> IntervalState:
    """
    Classify an instance relative to ``now``.

    Args:
        instance: EventInstance to classify
        now: Instant to classify against
        grace_minutes: How long an ended instance stays visible

    Returns:
        IntervalState
    """
    now = to_utc(now)
    if now < to_utc(instance.start_at):
        return IntervalState.NOT_STARTED
    if now < instance.end_at:
        return IntervalState.LIVE
    if now < instance.end_at + timedelta(minutes=grace_minutes):
        return IntervalState.GRACE_VISIBLE
    return IntervalState.EXPIRED


def is_visible(
    instance: EventInstance,
    now: datetime,
    grace_minutes: int = DEFAULT_GRACE_MINUTES
) -> bool:
    """Whether the instance belongs in a listing at all."""
    return classify(instance, now, grace_minutes) != IntervalState.EXPIRED


def join_window_opens_at(
    instance: EventInstance,
    lead_minutes: int = DEFAULT_JOIN_LEAD_MINUTES
) -> datetime:
    return to_utc(instance.start_at) - timedelta(minutes=lead_minutes)


def can_join_now(
    instance: EventInstance,
    now: datetime,
    lead_minutes: int = DEFAULT_JOIN_LEAD_MINUTES
) -> bool:
    """Whether ``now`` falls in ``[start - lead, end)``."""
    return join_window_opens_at(instance, lead_minutes) <= to_utc(now) < instance.end_at


def visible_instances(
    instances: Iterable[EventInstance],
    now: datetime,
    grace_minutes: int = DEFAULT_GRACE_MINUTES
) -> List[EventInstance]:
    """Drop instances that have expired beyond the grace window."""
    return [i for i in instances if is_visible(i, now, grace_minutes)]


def seconds_until_start(instance: EventInstance, now: datetime) -> int:
    """Whole seconds until start; zero or negative once started."""
    return int((to_utc(instance.start_at) - to_utc(now)).total_seconds())


def format_countdown(instance: EventInstance, now: datetime) -> str:
    """Human-readable countdown, e.g. ``"1h 5m 0s"`` or ``"42s"``."""
    remaining = seconds_until_start(instance, now)
    if remaining <= 0:
        return 'Class has started'

    hours, rest = divmod(remaining, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
