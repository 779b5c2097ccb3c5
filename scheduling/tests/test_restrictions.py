"""
Tests for booking, cancellation and reschedule restrictions.
"""

from datetime import datetime, timedelta, timezone

from dateutil import tz
from django.test import SimpleTestCase

from scheduling.restrictions import (
    annotate_slots,
    booking_denial_reason,
    cancellation_denial_reason,
    is_booking_allowed,
    reschedule_denial_reason,
)
from scheduling.types import BookingRestrictions, SessionType, TimeSlot

NOW = datetime(2025, 4, 14, 10, 0, tzinfo=timezone.utc)


def make_session_type(**restrictions):
    return SessionType(
        session_type_id='1',
        name='Private Session',
        duration_minutes=60,
        credit_cost=2,
        restrictions=BookingRestrictions(**restrictions),
    )


def at(delta):
    start = NOW + delta
    return start.date(), start.time()


class BookingRestrictionTests(SimpleTestCase):
    """Test booking_denial_reason and is_booking_allowed."""

    def setUp(self):
        self.session_type = make_session_type(min_lead_hours=2, max_advance_days=30)

    def test_inside_lead_time_denied(self):
        day, start = at(timedelta(minutes=90))
        reason = booking_denial_reason(day, start, self.session_type, NOW)

        self.assertEqual(reason, 'Sessions must be booked at least 2 hours in advance.')
        self.assertFalse(is_booking_allowed(day, start, self.session_type, NOW))

    def test_outside_lead_time_allowed(self):
        day, start = at(timedelta(hours=3))

        self.assertIsNone(booking_denial_reason(day, start, self.session_type, NOW))
        self.assertTrue(is_booking_allowed(day, start, self.session_type, NOW))

    def test_exact_lead_boundary_allowed(self):
        day, start = at(timedelta(hours=2))
        self.assertTrue(is_booking_allowed(day, start, self.session_type, NOW))

    def test_one_minute_inside_lead_denied(self):
        day, start = at(timedelta(hours=2) - timedelta(minutes=1))
        reason = booking_denial_reason(day, start, self.session_type, NOW)
        self.assertEqual(reason, 'Sessions must be booked at least 2 hours in advance.')

    def test_beyond_max_advance_denied(self):
        day, start = at(timedelta(days=31))
        reason = booking_denial_reason(day, start, self.session_type, NOW)
        self.assertEqual(reason, 'Sessions cannot be booked more than 30 days in advance.')

    def test_one_minute_beyond_max_advance_denied(self):
        day, start = at(timedelta(days=30, minutes=1))
        reason = booking_denial_reason(day, start, self.session_type, NOW)
        self.assertEqual(reason, 'Sessions cannot be booked more than 30 days in advance.')

    def test_exact_max_advance_boundary_allowed(self):
        day, start = at(timedelta(days=30))
        self.assertTrue(is_booking_allowed(day, start, self.session_type, NOW))

    def test_both_bounds_reported(self):
        """A window narrower than the lead time fails both ways."""
        session_type = make_session_type(min_lead_hours=48, max_advance_days=1)
        day, start = at(timedelta(hours=30))

        reason = booking_denial_reason(day, start, session_type, NOW)

        self.assertIn('at least 48 hours', reason)
        self.assertIn('more than 1 day in advance', reason)

    def test_past_start_denied_without_lead_time(self):
        session_type = make_session_type(min_lead_hours=0)
        day, start = at(timedelta(minutes=-30))
        self.assertFalse(is_booking_allowed(day, start, session_type, NOW))

    def test_lead_time_measured_across_dst_change(self):
        """Clocks spring forward overnight, so 22:00 to 03:00 is only four hours."""
        new_york = tz.gettz('America/New_York')
        now = datetime(2025, 3, 8, 22, 0, tzinfo=new_york)
        session_type = make_session_type(min_lead_hours=5, max_advance_days=30)
        day = now.date() + timedelta(days=1)

        self.assertFalse(is_booking_allowed(day, '03:00', session_type, now))
        self.assertTrue(is_booking_allowed(day, '04:00', session_type, now))

    def test_string_times_accepted(self):
        day = (NOW + timedelta(days=1)).date()
        self.assertTrue(is_booking_allowed(day, '2:00 PM', self.session_type, NOW))

    def test_annotate_slots(self):
        today = NOW.date()
        slots = [
            TimeSlot(today, (NOW + timedelta(hours=1)).time()),
            TimeSlot(today, (NOW + timedelta(hours=4)).time()),
        ]
        annotated = annotate_slots(slots, self.session_type, NOW)

        self.assertEqual([a.allowed for a in annotated], [False, True])
        self.assertIn('2 hours', annotated[0].reason)
        self.assertIsNone(annotated[1].reason)


class ChangeRestrictionTests(SimpleTestCase):
    """Test cancellation and reschedule cut-offs."""

    def setUp(self):
        self.session_type = make_session_type(min_cancel_hours=24, min_reschedule_hours=1)

    def test_cancellation_too_late(self):
        reason = cancellation_denial_reason(NOW + timedelta(hours=12), self.session_type, NOW)
        self.assertEqual(reason, 'Cancellations must be made at least 24 hours in advance.')

    def test_cancellation_in_time(self):
        self.assertIsNone(
            cancellation_denial_reason(NOW + timedelta(hours=24), self.session_type, NOW)
        )

    def test_reschedule_too_late(self):
        reason = reschedule_denial_reason(NOW + timedelta(minutes=30), self.session_type, NOW)
        self.assertEqual(
            reason,
            'Reschedule requests must be made at least 1 hour before the original session.'
        )

    def test_reschedule_in_time(self):
        self.assertIsNone(
            reschedule_denial_reason(NOW + timedelta(hours=2), self.session_type, NOW)
        )

    def test_cancellation_after_start_without_cutoff(self):
        session_type = make_session_type(min_cancel_hours=0)
        reason = cancellation_denial_reason(NOW - timedelta(minutes=10), session_type, NOW)
        self.assertEqual(reason, 'Session has already started.')

    def test_cancellation_at_start_denied(self):
        session_type = make_session_type(min_cancel_hours=0)
        self.assertEqual(
            cancellation_denial_reason(NOW, session_type, NOW),
            'Session has already started.'
        )

    def test_cancellation_without_cutoff_allowed_before_start(self):
        session_type = make_session_type(min_cancel_hours=0)
        self.assertIsNone(
            cancellation_denial_reason(NOW + timedelta(minutes=1), session_type, NOW)
        )

    def test_reschedule_after_start_denied(self):
        session_type = make_session_type(min_reschedule_hours=0)
        reason = reschedule_denial_reason(NOW - timedelta(hours=1), session_type, NOW)
        self.assertEqual(reason, 'Session has already started.')
