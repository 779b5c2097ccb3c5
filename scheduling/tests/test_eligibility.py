"""
Tests for the join eligibility gate.
"""

from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from scheduling.eligibility import decide, is_elevated
from scheduling.types import (
    DENY_CANCELLED,
    DENY_ENDED,
    DENY_NOT_YET_JOINABLE,
    STATUS_CANCELLED,
    EventInstance,
    JoinOutcome,
    Membership,
    Role,
    Viewer,
)

START = datetime(2025, 4, 14, 18, 0, tzinfo=timezone.utc)
DURING = START + timedelta(minutes=10)


class DecideTests(SimpleTestCase):
    """Test decide."""

    def setUp(self):
        self.instance = EventInstance(
            instance_id='3:2025-04-14',
            template_id='3',
            start_at=START,
            duration_minutes=45,
            name='Evening Yin',
            instructor_id='maya',
            join_link='https://zoom.us/j/987654321',
        )
        self.member = Viewer(
            user_id='alice',
            membership=Membership(active=True),
        )
        self.guest = Viewer(user_id='bob')

    def test_member_admitted_during_window(self):
        decision = decide(self.member, self.instance, DURING)

        self.assertEqual(decision.outcome, JoinOutcome.ADMIT)
        self.assertTrue(decision.admitted)

    def test_non_member_prompted(self):
        decision = decide(self.guest, self.instance, DURING)

        self.assertEqual(decision.outcome, JoinOutcome.PROMPT_MEMBERSHIP)
        self.assertFalse(decision.admitted)

    def test_expired_membership_prompted(self):
        viewer = Viewer(
            user_id='carol',
            membership=Membership(active=True, expires_at=START - timedelta(days=1)),
        )
        decision = decide(viewer, self.instance, DURING)
        self.assertEqual(decision.outcome, JoinOutcome.PROMPT_MEMBERSHIP)

    def test_admin_admitted_without_membership(self):
        admin = Viewer(user_id='root', role=Role.ADMIN)
        self.assertTrue(decide(admin, self.instance, DURING).admitted)

    def test_own_instructor_admitted_without_membership(self):
        instructor = Viewer(user_id='maya', role=Role.INSTRUCTOR)
        self.assertTrue(decide(instructor, self.instance, DURING).admitted)

    def test_other_instructor_needs_membership(self):
        instructor = Viewer(user_id='sarah', role=Role.INSTRUCTOR)
        decision = decide(instructor, self.instance, DURING)
        self.assertEqual(decision.outcome, JoinOutcome.PROMPT_MEMBERSHIP)

    def test_too_early_denied_even_for_admin(self):
        """Timing is checked before role or membership."""
        now = START - timedelta(minutes=6)
        for viewer in (self.member, Viewer(user_id='root', role=Role.ADMIN)):
            decision = decide(viewer, self.instance, now)
            self.assertEqual(decision.outcome, JoinOutcome.DENY)
            self.assertEqual(decision.reason, DENY_NOT_YET_JOINABLE)

    def test_ended_denied(self):
        now = self.instance.end_at + timedelta(minutes=5)
        decision = decide(self.member, self.instance, now)

        self.assertEqual(decision.outcome, JoinOutcome.DENY)
        self.assertEqual(decision.reason, DENY_ENDED)

    def test_cancelled_denied(self):
        cancelled = self.instance.with_changes(status=STATUS_CANCELLED)
        decision = decide(self.member, cancelled, DURING)

        self.assertEqual(decision.outcome, JoinOutcome.DENY)
        self.assertEqual(decision.reason, DENY_CANCELLED)

    def test_is_elevated(self):
        self.assertTrue(is_elevated(Viewer('root', Role.ADMIN), self.instance))
        self.assertTrue(is_elevated(Viewer('maya', Role.INSTRUCTOR), self.instance))
        self.assertFalse(is_elevated(Viewer('maya', Role.MEMBER), self.instance))
