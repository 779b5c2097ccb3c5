"""
Recurrence expansion for class templates.

Instances are never stored as authored entities: they are regenerated from
the template every time the horizon is recomputed, and per-occurrence
changes are merged back in from overrides keyed by ``instance_id``.
"""

import logging
from datetime import date, timedelta
from heapq import merge
from typing import Iterable, List

from .types import (
    DEFAULT_HORIZON_WEEKS,
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    STATUS_CANCELLED,
    EventInstance,
    EventTemplate,
    InstanceOverride,
)

logger = logging.getLogger(__name__)


def make_instance_id(template_id: str, day: date) -> str:
    """Stable identifier for the occurrence of a template on ``day``."""
    return f"{template_id}:{day.isoformat()}"


def expand_template(
    template: EventTemplate,
    horizon_weeks: int = DEFAULT_HORIZON_WEEKS
) -> List[EventInstance]:
    """
    Expand a template into its concrete instances over the horizon.

    Args:
        template: EventTemplate to expand
        horizon_weeks: Number of weeks to materialize, counted from the
            template's authored start

    Returns:
        List of EventInstance sorted by start_at

    Raises:
        ValueError: If horizon_weeks is not positive
    """
    if horizon_weeks < 1:
        raise ValueError("Horizon must be at least one week")

    offsets = _calculate_day_offsets(template, horizon_weeks)
    instances = [_create_instance(template, offset) for offset in offsets]
    instances.sort(key=lambda instance: instance.start_at)
    return instances


def expand_templates(
    templates: Iterable[EventTemplate],
    horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
    overrides: Iterable[InstanceOverride] = ()
) -> List[EventInstance]:
    """Expand several templates and merge them into one chronological list."""
    expanded = [expand_template(template, horizon_weeks) for template in templates]
    instances = list(merge(*expanded, key=lambda instance: instance.start_at))
    return apply_overrides(instances, overrides)


def _calculate_day_offsets(template: EventTemplate, horizon_weeks: int) -> List[int]:
    """Day offsets from the authored start at which instances occur."""
    pattern = template.recurrence

    if pattern is None or not pattern.is_recurring:
        return [0]

    if pattern.is_malformed:
        logger.warning(
            "Template %s recurs weekly with no days selected; "
            "treating it as a single class",
            template.template_id,
        )
        return [0]

    if pattern.frequency == FREQUENCY_DAILY:
        return list(range(7 * horizon_weeks))

    if pattern.frequency != FREQUENCY_WEEKLY:
        logger.warning(
            "Template %s has unknown frequency %r; treating it as a single class",
            template.template_id,
            pattern.frequency,
        )
        return [0]

    base_weekday = template.start_at.weekday()
    offsets = [0]
    for week in range(horizon_weeks):
        for day in sorted(pattern.days_of_week):
            if week == 0 and day == base_weekday:
                continue
            offsets.append((day - base_weekday + 7) % 7 + 7 * week)
    return offsets


def _create_instance(template: EventTemplate, day_offset: int) -> EventInstance:
    """Build the instance ``day_offset`` days after the authored start."""
    start_at = template.start_at + timedelta(days=day_offset)
    return EventInstance(
        instance_id=make_instance_id(template.template_id, start_at.date()),
        template_id=template.template_id,
        start_at=start_at,
        duration_minutes=template.duration_minutes,
        name=template.name,
        instructor_id=template.instructor_id,
        description=template.description,
        tags=tuple(template.tags),
        join_link=template.join_link,
        max_participants=template.max_participants,
    )


def apply_overrides(
    instances: Iterable[EventInstance],
    overrides: Iterable[InstanceOverride]
) -> List[EventInstance]:
    """
    Merge per-occurrence overrides into freshly expanded instances.

    Overrides whose instance is outside the current horizon are ignored.
    Cancelled instances are kept with a cancelled status so callers can
    decide whether to show them.
    """
    by_id = {override.instance_id: override for override in overrides}
    merged = []

    for instance in instances:
        override = by_id.get(instance.instance_id)
        if override is not None:
            instance = _apply_override(instance, override)
        merged.append(instance)

    merged.sort(key=lambda instance: instance.start_at)
    return merged


def _apply_override(instance: EventInstance, override: InstanceOverride) -> EventInstance:
    changes = {'is_exception': True}
    if override.cancelled:
        changes['status'] = STATUS_CANCELLED
    if override.start_at is not None:
        changes['start_at'] = override.start_at
    if override.duration_minutes is not None:
        changes['duration_minutes'] = override.duration_minutes
    return instance.with_changes(**changes)
