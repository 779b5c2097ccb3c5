"""
Data types and constants for the scheduling engine.

This module contains:
- Value objects passed between the engine components
- Decision/result types returned by the gates
- Constants used across the application
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


DEFAULT_HORIZON_WEEKS = 4
DEFAULT_SLOT_GRANULARITY_MINUTES = 15
DEFAULT_GRACE_MINUTES = 15
DEFAULT_JOIN_LEAD_MINUTES = 5
DEFAULT_MAX_ADVANCE_DAYS = 30

WEEKDAY_NAMES = (
    'monday',
    'tuesday',
    'wednesday',
    'thursday',
    'friday',
    'saturday',
    'sunday',
)

FREQUENCY_DAILY = 'daily'
FREQUENCY_WEEKLY = 'weekly'

SERIES_WEEKLY = 'weekly'
SERIES_BIWEEKLY = 'biweekly'
SERIES_MONTHLY = 'monthly'

STATUS_SCHEDULED = 'scheduled'
STATUS_CANCELLED = 'cancelled'

DENY_NOT_YET_JOINABLE = 'not yet joinable'
DENY_ENDED = 'class has ended'
DENY_CANCELLED = 'class was cancelled'

STOP_INSUFFICIENT_CREDITS = 'insufficient credits'
STOP_PROVIDER_UNAVAILABLE = 'provider unavailable'


class IntervalState(str, Enum):
    """Where an instance sits relative to a given instant."""
    NOT_STARTED = 'not_started'
    LIVE = 'live'
    GRACE_VISIBLE = 'grace_visible'
    EXPIRED = 'expired'


class Role(str, Enum):
    ADMIN = 'admin'
    INSTRUCTOR = 'instructor'
    MEMBER = 'member'


class JoinOutcome(str, Enum):
    ADMIT = 'admit'
    PROMPT_MEMBERSHIP = 'prompt_membership'
    DENY = 'deny'


@dataclass(frozen=True)
class RecurrencePattern:
    """Recurrence rule attached to an event template."""
    is_recurring: bool = False
    days_of_week: FrozenSet[int] = frozenset()
    frequency: str = FREQUENCY_WEEKLY

    @property
    def is_malformed(self) -> bool:
        """Weekly recurrence with no selected days."""
        return (
            self.is_recurring
            and self.frequency == FREQUENCY_WEEKLY
            and not self.days_of_week
        )


@dataclass(frozen=True)
class EventTemplate:
    """Authored, non-dated definition of a class."""
    template_id: str
    name: str
    instructor_id: str
    start_at: datetime
    duration_minutes: int = 60
    description: str = ''
    tags: Tuple[str, ...] = ()
    join_link: str = ''
    max_participants: Optional[int] = None
    recurrence: Optional[RecurrencePattern] = None


@dataclass(frozen=True)
class EventInstance:
    """One concrete, dated occurrence of a template."""
    instance_id: str
    template_id: str
    start_at: datetime
    duration_minutes: int
    name: str = ''
    instructor_id: str = ''
    description: str = ''
    tags: Tuple[str, ...] = ()
    join_link: str = ''
    max_participants: Optional[int] = None
    status: str = STATUS_SCHEDULED
    is_exception: bool = False

    @property
    def end_at(self) -> datetime:
        """Calculate end instant based on duration."""
        return to_utc(self.start_at) + timedelta(minutes=self.duration_minutes)

    @property
    def is_cancelled(self) -> bool:
        return self.status == STATUS_CANCELLED

    def with_changes(self, **changes) -> 'EventInstance':
        return replace(self, **changes)


@dataclass(frozen=True)
class InstanceOverride:
    """Per-occurrence exception merged back in after expansion."""
    instance_id: str
    cancelled: bool = False
    start_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None


TimeValue = Union[time, str]


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    A provider's recurring weekly offer.

    Either ``start_time``/``end_time`` or ``ranges`` (a sequence of
    ``(start, end)`` pairs) describes the offered time of day.
    """
    day_of_week: Union[int, str]
    start_time: Optional[TimeValue] = None
    end_time: Optional[TimeValue] = None
    ranges: Tuple[Tuple[TimeValue, TimeValue], ...] = ()


@dataclass(frozen=True, order=True)
class TimeSlot:
    """A projected, dated, fixed-granularity offer."""
    date: date
    start_time: time
    duration_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES

    @property
    def label(self) -> str:
        return self.start_time.strftime('%H:%M')


@dataclass(frozen=True)
class BookingRestrictions:
    min_lead_hours: float = 0
    max_advance_days: float = DEFAULT_MAX_ADVANCE_DAYS
    min_cancel_hours: float = 0
    min_reschedule_hours: float = 0


@dataclass(frozen=True)
class SessionType:
    """A bookable 1-on-1 session offered by a provider."""
    session_type_id: str
    name: str
    duration_minutes: int
    credit_cost: int
    allow_recurring: bool = False
    restrictions: BookingRestrictions = field(default_factory=BookingRestrictions)


@dataclass(frozen=True)
class SlotAvailability:
    slot: TimeSlot
    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class SeriesRecurrence:
    pattern: str
    until: date


@dataclass(frozen=True)
class BookingRequest:
    provider_id: str
    session_type: SessionType
    date: date
    time: time
    recurrence: Optional[SeriesRecurrence] = None


@dataclass(frozen=True)
class BookingEntry:
    """One dated booking produced from a request; carries its own cost."""
    provider_id: str
    session_type_id: str
    date: date
    time: time
    duration_minutes: int
    credit_cost: int
    occurrence_index: int = 0


@dataclass(frozen=True)
class Membership:
    active: bool = False
    expires_at: Optional[datetime] = None
    tier: Optional[str] = None

    def is_active_at(self, now: datetime) -> bool:
        """Active flag set and not yet expired at ``now``."""
        if not self.active:
            return False
        return self.expires_at is None or now < self.expires_at


@dataclass(frozen=True)
class Viewer:
    user_id: str
    role: Role = Role.MEMBER
    membership: Membership = field(default_factory=Membership)


@dataclass(frozen=True)
class JoinDecision:
    outcome: JoinOutcome
    reason: str = ''

    @property
    def admitted(self) -> bool:
        return self.outcome == JoinOutcome.ADMIT


@dataclass(frozen=True)
class CreditDecision:
    authorized: bool
    shortfall: int = 0


@dataclass(frozen=True)
class CreditTransaction:
    kind: str
    amount: int
    description: str = ''


@dataclass
class SeriesSettlement:
    """Outcome of authorizing a booking series against a balance."""
    accepted: list
    remaining_balance: int
    failed_entry: Optional[BookingEntry] = None
    shortfall: int = 0
    skipped: list = field(default_factory=list)
    reason: str = ''

    @property
    def is_complete(self) -> bool:
        return self.failed_entry is None


def to_utc(value: datetime) -> datetime:
    """
    The same instant in UTC; naive values are returned unchanged.

    Aware datetimes sharing a tzinfo subtract and compare by wall clock,
    which is off by the offset change across a DST transition.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)
