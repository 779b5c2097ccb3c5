"""
Custom managers and querysets for scheduling models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models
from django.db.models import Sum


class ClassTemplateQuerySet(models.QuerySet):
    """Custom queryset for ClassTemplate model with chainable methods."""

    def active(self):
        """Get all active class templates."""
        return self.filter(is_active=True)

    def for_instructor(self, instructor_id):
        """Get templates taught by an instructor."""
        return self.filter(instructor_id=instructor_id)


class ClassTemplateManager(models.Manager):
    """Custom manager for ClassTemplate model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return ClassTemplateQuerySet(self.model, using=self._db)

    def active(self):
        """Get all active class templates."""
        return self.get_queryset().active()

    def for_instructor(self, instructor_id):
        """Get templates taught by an instructor."""
        return self.get_queryset().for_instructor(instructor_id)


class WeeklyAvailabilityQuerySet(models.QuerySet):

    def for_provider(self, provider_id):
        return self.filter(provider_id=provider_id)

    def for_weekday(self, weekday):
        """
        Get windows for a specific weekday.

        Args:
            weekday: int (0=Monday, 6=Sunday)
        """
        return self.filter(day_of_week=weekday)


class WeeklyAvailabilityManager(models.Manager):

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return WeeklyAvailabilityQuerySet(self.model, using=self._db)

    def for_provider(self, provider_id):
        return self.get_queryset().for_provider(provider_id)

    def for_weekday(self, weekday):
        return self.get_queryset().for_weekday(weekday)


class BookingQuerySet(models.QuerySet):
    """Custom queryset for Booking model with chainable methods."""

    def scheduled(self):
        """Get bookings that have not been cancelled."""
        return self.filter(status='scheduled')

    def for_user(self, user_id):
        return self.filter(user_id=user_id)

    def upcoming(self, now):
        """
        Get scheduled bookings starting at or after ``now``.

        Args:
            now: datetime object
        """
        return self.scheduled().filter(start_at__gte=now)

    def in_series(self, series_id):
        return self.filter(series_id=series_id)


class BookingManager(models.Manager):
    """Custom manager for Booking model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return BookingQuerySet(self.model, using=self._db)

    def scheduled(self):
        """Get bookings that have not been cancelled."""
        return self.get_queryset().scheduled()

    def for_user(self, user_id):
        return self.get_queryset().for_user(user_id)

    def upcoming(self, now):
        """
        Get scheduled bookings starting at or after ``now``.

        Args:
            now: datetime object
        """
        return self.get_queryset().upcoming(now)

    def in_series(self, series_id):
        return self.get_queryset().in_series(series_id)


class CreditTransactionQuerySet(models.QuerySet):
    """Custom queryset for CreditTransaction model with chainable methods."""

    def for_user(self, user_id):
        return self.filter(user_id=user_id)

    def balance(self):
        """Sum of signed amounts in this queryset (0 when empty)."""
        return self.aggregate(total=Sum('amount'))['total'] or 0


class CreditTransactionManager(models.Manager):
    """Custom manager for CreditTransaction model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return CreditTransactionQuerySet(self.model, using=self._db)

    def for_user(self, user_id):
        return self.get_queryset().for_user(user_id)

    def balance_for(self, user_id):
        """Current credit balance of a user."""
        return self.get_queryset().for_user(user_id).balance()
