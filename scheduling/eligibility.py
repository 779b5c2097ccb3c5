"""
Join eligibility for class instances.

The gate only authorizes. Recording the enrollment after an admit is the
caller's job (see ``services.join_instance``).
"""

from datetime import datetime

from .clock import can_join_now, join_window_opens_at
from .types import (
    DEFAULT_JOIN_LEAD_MINUTES,
    DENY_CANCELLED,
    DENY_ENDED,
    DENY_NOT_YET_JOINABLE,
    EventInstance,
    JoinDecision,
    JoinOutcome,
    Role,
    Viewer,
)


def is_elevated(viewer: Viewer, instance: EventInstance) -> bool:
    """Administrators, and the instructor teaching this instance."""
    if viewer.role == Role.ADMIN:
        return True
    return (
        viewer.role == Role.INSTRUCTOR
        and bool(instance.instructor_id)
        and viewer.user_id == instance.instructor_id
    )


def decide(
    viewer: Viewer,
    instance: EventInstance,
    now: datetime,
    lead_minutes: int = DEFAULT_JOIN_LEAD_MINUTES
) -> JoinDecision:
    """
    Decide whether ``viewer`` may join ``instance`` at ``now``.

    Timing is checked before anything else: nobody joins early, not even
    with a membership or an elevated role.

    Args:
        viewer: Viewer with role and membership resolved
        instance: EventInstance being joined
        now: Instant of the join attempt
        lead_minutes: How early the join window opens

    Returns:
        JoinDecision (admit, prompt for membership, or deny with a reason)
    """
    if instance.is_cancelled:
        return JoinDecision(JoinOutcome.DENY, DENY_CANCELLED)

    if not can_join_now(instance, now, lead_minutes):
        if now < join_window_opens_at(instance, lead_minutes):
            return JoinDecision(JoinOutcome.DENY, DENY_NOT_YET_JOINABLE)
        return JoinDecision(JoinOutcome.DENY, DENY_ENDED)

    if is_elevated(viewer, instance):
        return JoinDecision(JoinOutcome.ADMIT)

    if viewer.membership.is_active_at(now):
        return JoinDecision(JoinOutcome.ADMIT)

    return JoinDecision(JoinOutcome.PROMPT_MEMBERSHIP, 'membership required')
