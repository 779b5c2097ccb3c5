"""
Models for the studio booking system.

Class instances are not stored: ClassTemplate holds the authored class and
its recurrence rule, and instances are expanded from it on demand.
Only per-occurrence exceptions (InstanceOverride) are persisted.
"""

from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from . import types
from .conf import get_setting
from .credits import TRANSACTION_KINDS
from .managers import (
    BookingManager,
    ClassTemplateManager,
    CreditTransactionManager,
    WeeklyAvailabilityManager,
)

WEEKDAY_CHOICES = [
    (index, name.capitalize()) for index, name in enumerate(types.WEEKDAY_NAMES)
]


class ClassTemplate(models.Model):
    """
    Stores an authored class and its optional recurrence rule.

    ``start_at`` is the first (authored) occurrence; recurring instances are
    derived from it by the recurrence expander.
    """

    FREQUENCY_CHOICES = [
        (types.FREQUENCY_DAILY, 'Daily'),
        (types.FREQUENCY_WEEKLY, 'Weekly'),
    ]

    name = models.CharField(max_length=200)
    instructor_id = models.CharField(
        max_length=150,
        help_text="Username of the instructor teaching this class"
    )
    description = models.TextField(blank=True, default='')
    start_at = models.DateTimeField(help_text="Start of the authored occurrence")
    duration_minutes = models.PositiveIntegerField(default=60)
    tags = models.JSONField(default=list, blank=True)
    join_link = models.URLField(blank=True, default='')
    max_participants = models.PositiveIntegerField(null=True, blank=True)

    is_recurring = models.BooleanField(default=False)
    frequency = models.CharField(
        max_length=20,
        choices=FREQUENCY_CHOICES,
        default=types.FREQUENCY_WEEKLY
    )
    days_of_week = models.JSONField(
        default=list,
        blank=True,
        help_text="Weekdays for weekly recurrence (0=Monday, 6=Sunday)"
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClassTemplateManager()

    class Meta:
        ordering = ['start_at']
        indexes = [
            models.Index(fields=['is_active', 'start_at'], name='template_active_start_idx'),
            models.Index(fields=['instructor_id'], name='template_instructor_idx'),
        ]

    def __str__(self):
        return f"{self.name} - {self.start_at.strftime('%Y-%m-%d %H:%M')}"

    def clean(self):
        """Validate recurrence data."""
        super().clean()

        if self.duration_minutes is not None and self.duration_minutes <= 0:
            raise ValidationError({'duration_minutes': 'Duration must be positive.'})

        if any(not isinstance(day, int) or not 0 <= day <= 6 for day in self.days_of_week):
            raise ValidationError({
                'days_of_week': 'Weekdays must be integers between 0 (Monday) and 6 (Sunday).'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def to_template(self):
        """Convert to the engine's EventTemplate value object."""
        recurrence = None
        if self.is_recurring:
            recurrence = types.RecurrencePattern(
                is_recurring=True,
                days_of_week=frozenset(self.days_of_week),
                frequency=self.frequency,
            )
        return types.EventTemplate(
            template_id=str(self.pk),
            name=self.name,
            instructor_id=self.instructor_id,
            start_at=timezone.localtime(self.start_at),
            duration_minutes=self.duration_minutes,
            description=self.description,
            tags=tuple(self.tags),
            join_link=self.join_link,
            max_participants=self.max_participants,
            recurrence=recurrence,
        )


class InstanceOverride(models.Model):
    """A change to one occurrence of a template, keyed by instance id."""

    template = models.ForeignKey(
        ClassTemplate,
        on_delete=models.CASCADE,
        related_name='overrides'
    )
    instance_id = models.CharField(max_length=100, unique=True)
    is_cancelled = models.BooleanField(default=False)
    start_at = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Override {self.instance_id}"

    def to_override(self):
        return types.InstanceOverride(
            instance_id=self.instance_id,
            cancelled=self.is_cancelled,
            start_at=timezone.localtime(self.start_at) if self.start_at else None,
            duration_minutes=self.duration_minutes,
        )


class SessionType(models.Model):
    """A 1-on-1 session a provider offers, with its booking restrictions."""

    provider_id = models.CharField(max_length=150)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    duration_minutes = models.PositiveIntegerField(default=60)
    credit_cost = models.PositiveIntegerField(default=1)
    allow_recurring = models.BooleanField(default=False)

    min_lead_hours = models.PositiveIntegerField(default=0)
    max_advance_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Furthest ahead a session can be booked (null = site default)"
    )
    min_cancel_hours = models.PositiveIntegerField(default=0)
    min_reschedule_hours = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['provider_id', 'name']

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"

    def to_session_type(self):
        max_advance_days = self.max_advance_days
        if max_advance_days is None:
            max_advance_days = get_setting('DEFAULT_MAX_ADVANCE_DAYS')
        return types.SessionType(
            session_type_id=str(self.pk),
            name=self.name,
            duration_minutes=self.duration_minutes,
            credit_cost=self.credit_cost,
            allow_recurring=self.allow_recurring,
            restrictions=types.BookingRestrictions(
                min_lead_hours=self.min_lead_hours,
                max_advance_days=max_advance_days,
                min_cancel_hours=self.min_cancel_hours,
                min_reschedule_hours=self.min_reschedule_hours,
            ),
        )


class WeeklyAvailability(models.Model):
    """A provider's recurring weekly availability window."""

    provider_id = models.CharField(max_length=150)
    day_of_week = models.IntegerField(choices=WEEKDAY_CHOICES)
    start_time = models.TimeField()
    end_time = models.TimeField()

    objects = WeeklyAvailabilityManager()

    class Meta:
        ordering = ['provider_id', 'day_of_week', 'start_time']
        verbose_name_plural = 'weekly availability'

    def __str__(self):
        return (
            f"{self.provider_id}: {self.get_day_of_week_display()} "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        )

    def clean(self):
        super().clean()

        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': 'End time must be after start time.'})

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def to_window(self):
        return types.AvailabilityWindow(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class Booking(models.Model):
    """One booked session; a recurring series shares a ``series_id``."""

    STATUS_CHOICES = [
        (types.STATUS_SCHEDULED, 'Scheduled'),
        (types.STATUS_CANCELLED, 'Cancelled'),
    ]

    user_id = models.CharField(max_length=150)
    provider_id = models.CharField(max_length=150)
    session_type = models.ForeignKey(
        SessionType,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    start_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    credit_cost = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=types.STATUS_SCHEDULED
    )
    series_id = models.UUIDField(null=True, blank=True)
    occurrence_index = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingManager()

    class Meta:
        ordering = ['start_at']
        indexes = [
            models.Index(fields=['user_id', 'start_at'], name='booking_user_start_idx'),
            models.Index(fields=['provider_id', 'start_at'], name='booking_provider_start_idx'),
            models.Index(fields=['series_id'], name='booking_series_idx'),
        ]

    def __str__(self):
        status_str = f" [{self.status}]" if self.status != types.STATUS_SCHEDULED else ""
        return f"{self.session_type.name} - {self.start_at.strftime('%Y-%m-%d %H:%M')}{status_str}"

    @property
    def end_at(self):
        """Calculate end datetime based on duration."""
        return types.to_utc(self.start_at) + timedelta(minutes=self.duration_minutes)

    @property
    def is_recurring(self):
        return self.series_id is not None


class CreditTransaction(models.Model):
    """A signed entry in a user's credit ledger."""

    KIND_CHOICES = [(kind, kind.capitalize()) for kind in TRANSACTION_KINDS]

    user_id = models.CharField(max_length=150)
    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    amount = models.IntegerField()
    description = models.CharField(max_length=255, blank=True, default='')
    booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='credit_transactions'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CreditTransactionManager()

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['user_id', 'created_at'], name='credit_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} {self.kind} {self.amount:+d}"

    def to_transaction(self):
        return types.CreditTransaction(
            kind=self.kind,
            amount=self.amount,
            description=self.description,
        )


class Membership(models.Model):
    user_id = models.CharField(max_length=150, unique=True)
    is_active = models.BooleanField(default=False)
    expires_at = models.DateTimeField(null=True, blank=True)
    tier = models.CharField(max_length=50, blank=True, default='')

    def __str__(self):
        state = 'active' if self.is_active else 'inactive'
        return f"{self.user_id} ({state})"

    def to_membership(self):
        return types.Membership(
            active=self.is_active,
            expires_at=self.expires_at,
            tier=self.tier or None,
        )


class Enrollment(models.Model):
    """Attendance marker recorded when a viewer is admitted to an instance."""

    user_id = models.CharField(max_length=150)
    template = models.ForeignKey(
        ClassTemplate,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    instance_id = models.CharField(max_length=100)
    joined_at = models.DateTimeField()

    class Meta:
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user_id', 'instance_id'],
                name='unique_enrollment_per_instance'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.instance_id}"
