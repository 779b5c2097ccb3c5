"""
Service layer for scheduling business logic.

Services load state through the ORM, hand it to the pure engine modules and
persist the results. "now" is always passed in by the caller.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from django.db import transaction

from . import clock, eligibility, recurrence, restrictions, series
from .availability import fits_availability, project_slots
from .conf import get_setting
from .credits import TRANSACTION_PURCHASE, TRANSACTION_REFUND, TRANSACTION_USAGE, ledger_balance
from .filters import InstanceFilter, filter_instances
from .models import (
    Booking,
    ClassTemplate,
    CreditTransaction,
    Enrollment,
    InstanceOverride,
    Membership,
    SessionType,
    WeeklyAvailability,
)
from .types import (
    STATUS_CANCELLED,
    BookingRequest,
    EventInstance,
    JoinDecision,
    Role,
    SeriesRecurrence,
    SeriesSettlement,
    SlotAvailability,
    Viewer,
)

logger = logging.getLogger(__name__)

INSTRUCTOR_GROUP = 'instructors'


# Viewers

def viewer_for_user(user) -> Viewer:
    """
    Resolve a Django user into the engine's Viewer.

    Roles are resolved here, once, from staff status and group membership.
    """
    user_id = user.get_username()

    if user.is_staff or user.is_superuser:
        role = Role.ADMIN
    elif user.groups.filter(name=INSTRUCTOR_GROUP).exists():
        role = Role.INSTRUCTOR
    else:
        role = Role.MEMBER

    membership = Membership.objects.filter(user_id=user_id).first()
    if membership is None:
        return Viewer(user_id=user_id, role=role)
    return Viewer(user_id=user_id, role=role, membership=membership.to_membership())


# Class instances

def _weeks_to_cover(start_at: datetime, until: datetime) -> int:
    """Whole weeks from ``start_at`` needed to reach ``until``."""
    if until <= start_at:
        return 1
    return (until - start_at).days // 7 + 1


def list_instances(
    now: datetime,
    horizon_weeks: Optional[int] = None,
    criteria: Optional[InstanceFilter] = None,
    include_cancelled: bool = False
) -> List[EventInstance]:
    """
    Get visible class instances from now until the end of the horizon.

    Args:
        now: Current instant (drives visibility)
        horizon_weeks: Weeks ahead of now to list (default from settings)
        criteria: Optional InstanceFilter
        include_cancelled: Whether to keep cancelled occurrences

    Returns:
        List of EventInstance sorted by start_at

    Raises:
        ValueError: If horizon_weeks is not positive
    """
    if horizon_weeks is None:
        horizon_weeks = get_setting('HORIZON_WEEKS')
    if horizon_weeks < 1:
        raise ValueError("Horizon must be at least one week")

    horizon_end = now + timedelta(weeks=horizon_weeks)
    template_models = ClassTemplate.objects.active()
    if criteria is not None and criteria.instructor_id:
        template_models = template_models.for_instructor(criteria.instructor_id)
    templates = [t.to_template() for t in template_models]
    overrides = [o.to_override() for o in InstanceOverride.objects.filter(template__is_active=True)]

    instances = []
    for template in templates:
        weeks = _weeks_to_cover(template.start_at, horizon_end)
        instances.extend(recurrence.expand_template(template, weeks))

    instances = recurrence.apply_overrides(instances, overrides)
    instances = [i for i in instances if i.start_at < horizon_end]
    instances = clock.visible_instances(instances, now, get_setting('GRACE_MINUTES'))

    if not include_cancelled:
        instances = [i for i in instances if not i.is_cancelled]
    if criteria is not None:
        instances = filter_instances(instances, criteria)

    return instances


def _split_instance_id(instance_id: str) -> Tuple[str, date]:
    template_id, _, day = instance_id.partition(':')
    try:
        return template_id, date.fromisoformat(day)
    except ValueError:
        raise ValueError(f"Malformed instance id: {instance_id!r}") from None


def get_instance(instance_id: str) -> Optional[EventInstance]:
    """
    Regenerate a single instance from its template.

    Returns:
        EventInstance with its override applied, or None if the template
        does not produce that occurrence
    """
    template_id, day = _split_instance_id(instance_id)
    if not template_id.isdigit():
        return None
    template_model = ClassTemplate.objects.active().filter(pk=int(template_id)).first()
    if template_model is None:
        return None

    template = template_model.to_template()
    if day < template.start_at.date():
        return None

    weeks = (day - template.start_at.date()).days // 7 + 1
    for instance in recurrence.expand_template(template, weeks):
        if instance.instance_id == instance_id:
            overrides = [o.to_override() for o in template_model.overrides.all()]
            return recurrence.apply_overrides([instance], overrides)[0]
    return None


@transaction.atomic
def cancel_instance(instance: EventInstance) -> InstanceOverride:
    """
    Cancel one occurrence without touching the rest of its series.

    Raises:
        ValueError: If the occurrence is already cancelled
    """
    if instance.is_cancelled:
        raise ValueError("Class is already cancelled")

    override, _ = InstanceOverride.objects.update_or_create(
        instance_id=instance.instance_id,
        defaults={
            'template_id': int(instance.template_id),
            'is_cancelled': True,
        },
    )
    logger.info("Cancelled class instance %s", instance.instance_id)
    return override


@transaction.atomic
def update_instance(
    instance: EventInstance,
    start_at: Optional[datetime] = None,
    duration_minutes: Optional[int] = None
) -> InstanceOverride:
    """
    Move or resize one occurrence, recording it as an exception.

    Raises:
        ValueError: If the occurrence is cancelled or the duration is not positive
    """
    if instance.is_cancelled:
        raise ValueError("Cannot change a cancelled class")
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValueError("Duration must be positive")

    defaults = {'template_id': int(instance.template_id)}
    if start_at is not None:
        defaults['start_at'] = start_at
    if duration_minutes is not None:
        defaults['duration_minutes'] = duration_minutes

    override, _ = InstanceOverride.objects.update_or_create(
        instance_id=instance.instance_id,
        defaults=defaults,
    )
    return override


def join_instance(viewer: Viewer, instance: EventInstance, now: datetime) -> JoinDecision:
    """
    Decide a join attempt and record the enrollment on admit.

    Args:
        viewer: Viewer resolved at the authentication boundary
        instance: EventInstance being joined
        now: Instant of the attempt

    Returns:
        JoinDecision from the eligibility gate
    """
    decision = eligibility.decide(viewer, instance, now, get_setting('JOIN_LEAD_MINUTES'))

    if decision.admitted:
        _, created = Enrollment.objects.get_or_create(
            user_id=viewer.user_id,
            instance_id=instance.instance_id,
            defaults={'template_id': int(instance.template_id), 'joined_at': now},
        )
        if created:
            logger.info("User %s joined %s", viewer.user_id, instance.instance_id)

    return decision


# Availability

def _provider_windows(provider_id: str, day: date):
    queryset = WeeklyAvailability.objects.for_provider(provider_id).for_weekday(day.weekday())
    return [w.to_window() for w in queryset]


def is_provider_available(
    provider_id: str,
    day: date,
    time_of_day: time,
    duration_minutes: int
) -> bool:
    """Whether the provider's weekly availability covers the whole session."""
    return fits_availability(
        _provider_windows(provider_id, day),
        day,
        time_of_day,
        duration_minutes,
        get_setting('SLOT_GRANULARITY_MINUTES'),
    )


def get_slot_availability(
    provider_id: str,
    session_type: SessionType,
    day: date,
    now: datetime
) -> List[SlotAvailability]:
    """
    Project a provider's weekly availability onto ``day`` and mark which
    slots the session type's restrictions allow right now.
    """
    windows = _provider_windows(provider_id, day)
    slots = project_slots(windows, day, get_setting('SLOT_GRANULARITY_MINUTES'))
    return restrictions.annotate_slots(slots, session_type.to_session_type(), now)


# Bookings

@dataclass
class BookingResult:
    """Bookings created for a request, with the series settlement."""
    bookings: List[Booking] = field(default_factory=list)
    settlement: Optional[SeriesSettlement] = None

    @property
    def failed_entry(self):
        return self.settlement.failed_entry if self.settlement else None


def book_session(
    user_id: str,
    session_type: SessionType,
    day: date,
    time_of_day: time,
    now: datetime,
    series_recurrence: Optional[SeriesRecurrence] = None
) -> BookingResult:
    """
    Book a session, or a recurring series of sessions.

    Each entry is debited and saved in its own transaction, so entries
    booked before a credit shortfall stay booked.

    Args:
        user_id: Booking user
        session_type: SessionType model instance
        day: Date of the first session
        time_of_day: Start time of every session
        now: Current instant
        series_recurrence: Optional SeriesRecurrence

    Returns:
        BookingResult

    Raises:
        ValueError: If the session type is inactive, or the first session
            breaks the lead-time/advance-window restrictions or falls
            outside the provider's availability
    """
    if not session_type.is_active:
        raise ValueError("Session type is not available for booking")

    engine_type = session_type.to_session_type()
    reason = restrictions.booking_denial_reason(day, time_of_day, engine_type, now)
    if reason:
        raise ValueError(reason)
    if not is_provider_available(session_type.provider_id, day, time_of_day, engine_type.duration_minutes):
        raise ValueError("Provider is not available at that time")

    request = BookingRequest(
        provider_id=session_type.provider_id,
        session_type=engine_type,
        date=day,
        time=time_of_day,
        recurrence=series_recurrence,
    )
    entries = series.expand_series(request)
    balance = CreditTransaction.objects.balance_for(user_id)
    settlement = series.settle_series(
        entries,
        balance,
        is_available=lambda entry: is_provider_available(
            entry.provider_id, entry.date, entry.time, entry.duration_minutes
        ),
    )

    series_id = uuid.uuid4() if len(entries) > 1 else None
    bookings = [
        _save_booking(user_id, session_type, entry, now, series_id)
        for entry in settlement.accepted
    ]

    if settlement.failed_entry is not None:
        logger.warning(
            "Booking for %s stopped at %s: %s",
            user_id,
            settlement.failed_entry.date,
            settlement.reason,
        )

    return BookingResult(bookings=bookings, settlement=settlement)


@transaction.atomic
def _save_booking(user_id, session_type, entry, now, series_id) -> Booking:
    start_at = restrictions.combine(entry.date, entry.time, now)
    booking = Booking.objects.create(
        user_id=user_id,
        provider_id=entry.provider_id,
        session_type=session_type,
        start_at=start_at,
        duration_minutes=entry.duration_minutes,
        credit_cost=entry.credit_cost,
        series_id=series_id,
        occurrence_index=entry.occurrence_index,
    )
    CreditTransaction.objects.create(
        user_id=user_id,
        kind=TRANSACTION_USAGE,
        amount=-entry.credit_cost,
        description=f"{session_type.name} on {entry.date.isoformat()}",
        booking=booking,
    )
    logger.info("Booked %s for %s at %s", session_type.name, user_id, start_at)
    return booking


@transaction.atomic
def cancel_booking(booking: Booking, now: datetime) -> Booking:
    """
    Cancel a booking and refund its credits as a new ledger entry.

    Raises:
        ValueError: If the booking is already cancelled or it is too late
            to cancel
    """
    if booking.status == STATUS_CANCELLED:
        raise ValueError("Booking is already cancelled")

    reason = restrictions.cancellation_denial_reason(
        booking.start_at, booking.session_type.to_session_type(), now
    )
    if reason:
        raise ValueError(reason)

    booking.status = STATUS_CANCELLED
    booking.save()

    if booking.credit_cost:
        CreditTransaction.objects.create(
            user_id=booking.user_id,
            kind=TRANSACTION_REFUND,
            amount=booking.credit_cost,
            description=f"Refund for cancelled {booking.session_type.name}",
            booking=booking,
        )
    logger.info("Cancelled booking %s, refunded %d credit(s)", booking.pk, booking.credit_cost)
    return booking


@transaction.atomic
def reschedule_booking(
    booking: Booking,
    day: date,
    time_of_day: time,
    now: datetime
) -> Booking:
    """
    Move a booking to a new date and time.

    Raises:
        ValueError: If the booking is cancelled, the original session is
            too close, or the new slot breaks the booking restrictions or
            falls outside the provider's availability
    """
    if booking.status == STATUS_CANCELLED:
        raise ValueError("Cannot reschedule a cancelled booking")

    engine_type = booking.session_type.to_session_type()
    reason = (
        restrictions.reschedule_denial_reason(booking.start_at, engine_type, now)
        or restrictions.booking_denial_reason(day, time_of_day, engine_type, now)
    )
    if reason:
        raise ValueError(reason)
    if not is_provider_available(booking.provider_id, day, time_of_day, booking.duration_minutes):
        raise ValueError("Provider is not available at that time")

    booking.start_at = restrictions.combine(day, time_of_day, now)
    booking.save()
    return booking


# Credits

@transaction.atomic
def purchase_credits(user_id: str, amount: int, description: str = '') -> CreditTransaction:
    """
    Record a credit purchase. Payment capture happens elsewhere.

    Raises:
        ValueError: If amount is not positive
    """
    if amount <= 0:
        raise ValueError("Credit amount must be positive")

    return CreditTransaction.objects.create(
        user_id=user_id,
        kind=TRANSACTION_PURCHASE,
        amount=amount,
        description=description or f"Purchased {amount} credit(s)",
    )


def get_credit_summary(user_id: str) -> Tuple[int, List[CreditTransaction]]:
    """Balance and full transaction history of a user."""
    transactions = list(CreditTransaction.objects.for_user(user_id))
    balance = ledger_balance(t.to_transaction() for t in transactions)
    return balance, transactions
