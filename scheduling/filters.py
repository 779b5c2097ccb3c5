"""
Listing filters for class instances.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .types import EventInstance


TIME_OF_DAY_BUCKETS = {
    'morning': (5, 12),
    'afternoon': (12, 17),
    'evening': (17, 21),
}


@dataclass(frozen=True)
class InstanceFilter:
    tags: Tuple[str, ...] = ()
    instructor_id: str = ''
    time_of_day: str = ''
    search: str = ''


def time_of_day_bucket(instance: EventInstance) -> Optional[str]:
    """Bucket name for the instance's local start hour, if any."""
    hour = instance.start_at.hour
    for name, (first, last) in TIME_OF_DAY_BUCKETS.items():
        if first <= hour < last:
            return name
    return None


def _matches_search(instance: EventInstance, term: str) -> bool:
    term = term.lower()
    haystack = [instance.name, instance.instructor_id, instance.description]
    haystack.extend(instance.tags)
    return any(term in value.lower() for value in haystack)


def matches(instance: EventInstance, criteria: InstanceFilter) -> bool:
    if criteria.tags and not set(criteria.tags) & set(instance.tags):
        return False

    if criteria.instructor_id and instance.instructor_id != criteria.instructor_id:
        return False

    if criteria.time_of_day and time_of_day_bucket(instance) != criteria.time_of_day:
        return False

    if criteria.search and not _matches_search(instance, criteria.search):
        return False

    return True


def filter_instances(
    instances: Iterable[EventInstance],
    criteria: InstanceFilter
) -> List[EventInstance]:
    """Keep instances matching every criterion that is set."""
    return [instance for instance in instances if matches(instance, criteria)]
