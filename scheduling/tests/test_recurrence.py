"""
Tests for recurrence expansion and per-occurrence overrides.
"""

from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from scheduling.recurrence import (
    apply_overrides,
    expand_template,
    expand_templates,
    make_instance_id,
)
from scheduling.types import (
    STATUS_CANCELLED,
    EventTemplate,
    InstanceOverride,
    RecurrencePattern,
)

MONDAY_8AM = datetime(2025, 4, 14, 8, 0, tzinfo=timezone.utc)


def make_template(recurrence=None, start_at=MONDAY_8AM, template_id='7'):
    return EventTemplate(
        template_id=template_id,
        name='Morning Flow',
        instructor_id='sarah',
        start_at=start_at,
        duration_minutes=60,
        description='Energizing flow',
        tags=('Morning', 'Vinyasa'),
        join_link='https://zoom.us/j/123456789',
        recurrence=recurrence,
    )


class ExpandTemplateTests(SimpleTestCase):
    """Test expand_template."""

    def test_non_recurring_template_yields_single_instance(self):
        """A template without a pattern is its own only instance."""
        instances = expand_template(make_template())

        self.assertEqual(len(instances), 1)
        self.assertEqual(instances[0].start_at, MONDAY_8AM)
        self.assertEqual(instances[0].instance_id, '7:2025-04-14')

    def test_disabled_pattern_yields_single_instance(self):
        pattern = RecurrencePattern(is_recurring=False, days_of_week=frozenset({0, 2}))
        self.assertEqual(len(expand_template(make_template(pattern))), 1)

    def test_weekly_mon_wed_fri_over_two_weeks(self):
        """Monday base, {Mon, Wed, Fri}, two weeks -> six instances."""
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({0, 2, 4}))
        instances = expand_template(make_template(pattern), horizon_weeks=2)

        expected_days = [14, 16, 18, 21, 23, 25]
        self.assertEqual([i.start_at.day for i in instances], expected_days)
        for instance in instances:
            self.assertEqual(instance.start_at.hour, 8)
            self.assertEqual(instance.duration_minutes, 60)

    def test_no_duplicate_base_instance(self):
        """The base weekday in days_of_week does not duplicate week 0."""
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({0}))
        instances = expand_template(make_template(pattern), horizon_weeks=4)

        starts = [i.start_at for i in instances]
        self.assertEqual(len(starts), len(set(starts)))
        self.assertEqual(len(instances), 4)

    def test_base_instance_kept_when_weekday_not_selected(self):
        """The authored Monday stays even if only Tuesdays are selected."""
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({1}))
        instances = expand_template(make_template(pattern), horizon_weeks=2)

        self.assertEqual(instances[0].start_at, MONDAY_8AM)
        self.assertEqual([i.start_at.weekday() for i in instances], [0, 1, 1])

    def test_daily_pattern_ignores_days_of_week(self):
        pattern = RecurrencePattern(
            is_recurring=True,
            days_of_week=frozenset({3}),
            frequency='daily',
        )
        instances = expand_template(make_template(pattern), horizon_weeks=1)

        self.assertEqual(len(instances), 7)
        self.assertEqual(instances[-1].start_at, MONDAY_8AM + timedelta(days=6))

    def test_weekly_with_no_days_degrades_to_single_instance(self):
        """Malformed weekly recurrence is treated as non-recurring, with a warning."""
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset())

        with self.assertLogs('scheduling.recurrence', level='WARNING'):
            instances = expand_template(make_template(pattern), horizon_weeks=4)

        self.assertEqual(len(instances), 1)

    def test_instances_inherit_template_fields(self):
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({2}))
        instance = expand_template(make_template(pattern), horizon_weeks=1)[1]

        self.assertEqual(instance.name, 'Morning Flow')
        self.assertEqual(instance.instructor_id, 'sarah')
        self.assertEqual(instance.tags, ('Morning', 'Vinyasa'))
        self.assertEqual(instance.join_link, 'https://zoom.us/j/123456789')
        self.assertEqual(instance.template_id, '7')

    def test_expansion_is_idempotent(self):
        """Instance ids are stable across regenerations."""
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({0, 3, 5}))
        template = make_template(pattern)

        first = [i.instance_id for i in expand_template(template, 3)]
        second = [i.instance_id for i in expand_template(template, 3)]

        self.assertEqual(first, second)
        self.assertEqual(len(first), len(set(first)))

    def test_output_is_sorted(self):
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({6, 1, 4}))
        thursday = MONDAY_8AM + timedelta(days=3)
        starts = [i.start_at for i in expand_template(make_template(pattern, thursday), 3)]

        self.assertEqual(starts, sorted(starts))

    def test_invalid_horizon(self):
        with self.assertRaises(ValueError):
            expand_template(make_template(), horizon_weeks=0)


class InstanceIdTests(SimpleTestCase):

    def test_make_instance_id(self):
        self.assertEqual(make_instance_id('12', MONDAY_8AM.date()), '12:2025-04-14')


class OverrideTests(SimpleTestCase):
    """Test apply_overrides and expand_templates."""

    def setUp(self):
        pattern = RecurrencePattern(is_recurring=True, days_of_week=frozenset({0}))
        self.instances = expand_template(make_template(pattern), horizon_weeks=3)

    def test_cancel_single_occurrence(self):
        target = self.instances[1]
        merged = apply_overrides(
            self.instances,
            [InstanceOverride(instance_id=target.instance_id, cancelled=True)],
        )

        self.assertEqual(merged[1].status, STATUS_CANCELLED)
        self.assertTrue(merged[1].is_exception)
        self.assertFalse(merged[0].is_cancelled)
        self.assertFalse(merged[2].is_cancelled)

    def test_reschedule_single_occurrence_resorts(self):
        """Moving the first Monday past the second re-sorts the list."""
        first = self.instances[0]
        moved_to = MONDAY_8AM + timedelta(days=8)
        merged = apply_overrides(
            self.instances,
            [InstanceOverride(instance_id=first.instance_id, start_at=moved_to, duration_minutes=90)],
        )

        self.assertEqual(merged[1].instance_id, first.instance_id)
        self.assertEqual(merged[1].start_at, moved_to)
        self.assertEqual(merged[1].duration_minutes, 90)

    def test_override_outside_horizon_is_ignored(self):
        merged = apply_overrides(
            self.instances,
            [InstanceOverride(instance_id='7:2030-01-07', cancelled=True)],
        )
        self.assertEqual(merged, self.instances)

    def test_expand_templates_merges_chronologically(self):
        weekly = make_template(
            RecurrencePattern(is_recurring=True, days_of_week=frozenset({0})),
            template_id='1',
        )
        single = make_template(start_at=MONDAY_8AM + timedelta(days=2), template_id='2')

        instances = expand_templates([weekly, single], horizon_weeks=2)

        self.assertEqual(
            [i.instance_id for i in instances],
            ['1:2025-04-14', '2:2025-04-16', '1:2025-04-21'],
        )
