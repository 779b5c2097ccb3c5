"""
Projection of weekly availability windows onto a concrete date.
"""

from datetime import date, datetime, time
from typing import Iterable, List, Tuple, Union

from .types import (
    DEFAULT_SLOT_GRANULARITY_MINUTES,
    WEEKDAY_NAMES,
    AvailabilityWindow,
    TimeSlot,
    TimeValue,
)

_TIME_FORMATS = ('%H:%M', '%H:%M:%S', '%I:%M %p', '%I:%M%p')


def weekday_index(day: Union[int, str]) -> int:
    """
    Resolve a weekday given as an index (0=Monday) or a name.

    Raises:
        ValueError: If the weekday is out of range or not a known name
    """
    if isinstance(day, int):
        if not 0 <= day <= 6:
            raise ValueError("Weekday must be between 0 (Monday) and 6 (Sunday)")
        return day

    name = day.strip().lower()
    for index, weekday_name in enumerate(WEEKDAY_NAMES):
        if name in (weekday_name, weekday_name[:3]):
            return index
    raise ValueError(f"Unknown weekday: {day!r}")


def parse_time(value: TimeValue) -> time:
    """
    Parse a wall-clock time.

    Accepts ``time`` objects, ``"HH:MM"``, ``"HH:MM:SS"`` and 12-hour
    ``"hh:mm AM"`` strings.
    """
    if isinstance(value, time):
        return value

    text = value.strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised time: {value!r}")


def _to_minutes(value: TimeValue) -> int:
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def normalize_windows(
    windows: Iterable[AvailabilityWindow]
) -> List[Tuple[int, int, int]]:
    """
    Flatten windows into ``(weekday, start_minute, end_minute)`` triples.

    Single start/end pairs and nested ranges produce the same triples for
    equivalent input.
    """
    triples = []
    for window in windows:
        weekday = weekday_index(window.day_of_week)
        ranges = list(window.ranges)
        if window.start_time is not None and window.end_time is not None:
            ranges.insert(0, (window.start_time, window.end_time))
        for start, end in ranges:
            triples.append((weekday, _to_minutes(start), _to_minutes(end)))
    return triples


def project_slots(
    windows: Iterable[AvailabilityWindow],
    day: date,
    granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES
) -> List[TimeSlot]:
    """
    Project weekly availability onto ``day`` as fixed-granularity slots.

    A slot is only emitted if it fits entirely inside its window; overlapping
    windows do not produce duplicate slots.

    Args:
        windows: AvailabilityWindow sequence for one provider
        day: Calendar date to project onto
        granularity_minutes: Slot length and step

    Returns:
        List of TimeSlot sorted by start time

    Raises:
        ValueError: If granularity_minutes is not positive
    """
    if granularity_minutes <= 0:
        raise ValueError("Granularity must be positive")

    weekday = day.weekday()
    starts = set()

    for window_day, start, end in normalize_windows(windows):
        if window_day != weekday:
            continue
        step = start
        while step + granularity_minutes <= end:
            starts.add(step)
            step += granularity_minutes

    return [
        TimeSlot(
            date=day,
            start_time=time(minute // 60, minute % 60),
            duration_minutes=granularity_minutes,
        )
        for minute in sorted(starts)
    ]


def fits_availability(
    windows: Iterable[AvailabilityWindow],
    day: date,
    start_time: TimeValue,
    duration_minutes: int,
    granularity_minutes: int = DEFAULT_SLOT_GRANULARITY_MINUTES
) -> bool:
    """
    Whether a session can be held at ``start_time`` on ``day``.

    The start must fall on a slot projected from one of the provider's
    windows, and the whole session must end inside that same window.

    Raises:
        ValueError: If granularity_minutes is not positive
    """
    if granularity_minutes <= 0:
        raise ValueError("Granularity must be positive")

    parsed = parse_time(start_time)
    if parsed.second or parsed.microsecond:
        return False
    start = parsed.hour * 60 + parsed.minute
    weekday = day.weekday()

    for window_day, first, last in normalize_windows(windows):
        if window_day != weekday or not first <= start < last:
            continue
        on_slot = (start - first) % granularity_minutes == 0
        if on_slot and start + max(duration_minutes, granularity_minutes) <= last:
            return True
    return False
