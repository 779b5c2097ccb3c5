"""
Tests for recurring booking series and credit authorization.
"""

from datetime import date, time

from django.test import SimpleTestCase

from scheduling.credits import authorize, ledger_balance
from scheduling.series import expand_series, settle_series
from scheduling.types import (
    STOP_INSUFFICIENT_CREDITS,
    STOP_PROVIDER_UNAVAILABLE,
    BookingRequest,
    CreditTransaction,
    SeriesRecurrence,
    SessionType,
)


def make_request(recurrence=None, allow_recurring=True, anchor=date(2025, 4, 14), cost=2):
    session_type = SessionType(
        session_type_id='5',
        name='Private Session',
        duration_minutes=60,
        credit_cost=cost,
        allow_recurring=allow_recurring,
    )
    return BookingRequest(
        provider_id='maya',
        session_type=session_type,
        date=anchor,
        time=time(9, 0),
        recurrence=recurrence,
    )


class ExpandSeriesTests(SimpleTestCase):
    """Test expand_series."""

    def test_single_booking(self):
        entries = expand_series(make_request())

        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].date, date(2025, 4, 14))
        self.assertEqual(entries[0].credit_cost, 2)
        self.assertEqual(entries[0].provider_id, 'maya')

    def test_weekly_until_inclusive(self):
        recurrence = SeriesRecurrence('weekly', until=date(2025, 5, 5))
        entries = expand_series(make_request(recurrence))

        self.assertEqual(
            [e.date for e in entries],
            [date(2025, 4, 14), date(2025, 4, 21), date(2025, 4, 28), date(2025, 5, 5)]
        )
        self.assertEqual([e.occurrence_index for e in entries], [0, 1, 2, 3])

    def test_biweekly(self):
        recurrence = SeriesRecurrence('biweekly', until=date(2025, 5, 11))
        entries = expand_series(make_request(recurrence))
        self.assertEqual([e.date for e in entries], [date(2025, 4, 14), date(2025, 4, 28)])

    def test_monthly_from_month_end(self):
        """An anchor on the 31st clamps in short months and does not drift."""
        recurrence = SeriesRecurrence('monthly', until=date(2025, 4, 30))
        entries = expand_series(make_request(recurrence, anchor=date(2025, 1, 31)))

        self.assertEqual(
            [e.date for e in entries],
            [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]
        )

    def test_every_entry_carries_the_cost(self):
        recurrence = SeriesRecurrence('weekly', until=date(2025, 4, 28))
        entries = expand_series(make_request(recurrence, cost=3))
        self.assertEqual([e.credit_cost for e in entries], [3, 3, 3])

    def test_recurrence_ignored_when_not_allowed(self):
        recurrence = SeriesRecurrence('weekly', until=date(2025, 5, 5))

        with self.assertLogs('scheduling.series', level='WARNING'):
            entries = expand_series(make_request(recurrence, allow_recurring=False))

        self.assertEqual(len(entries), 1)

    def test_unknown_pattern(self):
        recurrence = SeriesRecurrence('fortnightly-ish', until=date(2025, 5, 5))
        with self.assertRaises(ValueError):
            expand_series(make_request(recurrence))


class SettleSeriesTests(SimpleTestCase):
    """Test settle_series."""

    def setUp(self):
        recurrence = SeriesRecurrence('weekly', until=date(2025, 5, 5))
        self.entries = expand_series(make_request(recurrence, cost=2))

    def test_balance_covers_series(self):
        settlement = settle_series(self.entries, balance=10)

        self.assertTrue(settlement.is_complete)
        self.assertEqual(len(settlement.accepted), 4)
        self.assertEqual(settlement.remaining_balance, 2)

    def test_partial_failure_reports_occurrence(self):
        """Five credits pay for two sessions; the third fails short by one."""
        settlement = settle_series(self.entries, balance=5)

        self.assertFalse(settlement.is_complete)
        self.assertEqual(len(settlement.accepted), 2)
        self.assertEqual(settlement.failed_entry.occurrence_index, 2)
        self.assertEqual(settlement.failed_entry.date, date(2025, 4, 28))
        self.assertEqual(settlement.shortfall, 1)
        self.assertEqual([e.occurrence_index for e in settlement.skipped], [3])
        self.assertEqual(settlement.remaining_balance, 1)

    def test_nothing_affordable(self):
        settlement = settle_series(self.entries, balance=0)

        self.assertEqual(settlement.accepted, [])
        self.assertEqual(settlement.failed_entry.occurrence_index, 0)
        self.assertEqual(settlement.shortfall, 2)
        self.assertEqual(settlement.reason, STOP_INSUFFICIENT_CREDITS)

    def test_stops_at_first_unavailable_entry(self):
        """Entries after the provider's gap are skipped even if affordable."""
        unavailable = date(2025, 4, 28)
        settlement = settle_series(
            self.entries,
            balance=10,
            is_available=lambda entry: entry.date != unavailable,
        )

        self.assertEqual([e.occurrence_index for e in settlement.accepted], [0, 1])
        self.assertEqual(settlement.failed_entry.date, unavailable)
        self.assertEqual(settlement.reason, STOP_PROVIDER_UNAVAILABLE)
        self.assertEqual(settlement.shortfall, 0)
        self.assertEqual([e.occurrence_index for e in settlement.skipped], [3])
        self.assertEqual(settlement.remaining_balance, 6)

    def test_availability_checked_before_credits(self):
        settlement = settle_series(self.entries, balance=0, is_available=lambda entry: False)

        self.assertEqual(settlement.failed_entry.occurrence_index, 0)
        self.assertEqual(settlement.reason, STOP_PROVIDER_UNAVAILABLE)


class CreditTests(SimpleTestCase):
    """Test authorize and ledger_balance."""

    def test_authorize(self):
        self.assertTrue(authorize(5, 5).authorized)

        decision = authorize(3, 5)
        self.assertFalse(decision.authorized)
        self.assertEqual(decision.shortfall, 2)

    def test_free_session_always_authorized(self):
        self.assertTrue(authorize(0, 0).authorized)

    def test_negative_cost(self):
        with self.assertRaises(ValueError):
            authorize(5, -1)

    def test_ledger_balance(self):
        transactions = [
            CreditTransaction('purchase', 10),
            CreditTransaction('usage', -2),
            CreditTransaction('refund', 2),
            CreditTransaction('usage', -3),
        ]
        self.assertEqual(ledger_balance(transactions), 7)
