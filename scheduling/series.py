"""
Expansion of a booking request into a recurring series.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .credits import authorize
from .types import (
    SERIES_BIWEEKLY,
    SERIES_MONTHLY,
    SERIES_WEEKLY,
    STOP_INSUFFICIENT_CREDITS,
    STOP_PROVIDER_UNAVAILABLE,
    BookingEntry,
    BookingRequest,
    SeriesSettlement,
)

logger = logging.getLogger(__name__)

SERIES_STEPS = {
    SERIES_WEEKLY: relativedelta(weeks=1),
    SERIES_BIWEEKLY: relativedelta(weeks=2),
    SERIES_MONTHLY: relativedelta(months=1),
}


def expand_series(request: BookingRequest) -> List[BookingEntry]:
    """
    Expand a booking request into its dated entries.

    The requested date is always the first entry. Monthly series step by
    calendar month from the anchor date, so an anchor on the 31st lands on
    the last day of shorter months and returns to the 31st afterwards.

    Args:
        request: BookingRequest, optionally carrying a SeriesRecurrence

    Returns:
        List of BookingEntry in chronological order

    Raises:
        ValueError: If the recurrence pattern is unknown
    """
    recurrence = request.recurrence
    if recurrence is None:
        return [_make_entry(request, request.date, 0)]

    if not request.session_type.allow_recurring:
        logger.warning(
            "Session type %s does not allow recurring bookings; "
            "booking a single session",
            request.session_type.session_type_id,
        )
        return [_make_entry(request, request.date, 0)]

    if recurrence.pattern not in SERIES_STEPS:
        raise ValueError(f"Unknown recurrence pattern: {recurrence.pattern!r}")

    dates = _series_dates(request.date, recurrence.pattern, recurrence.until)
    return [_make_entry(request, day, index) for index, day in enumerate(dates)]


def _series_dates(anchor: date, pattern: str, until: date) -> List[date]:
    """Occurrence dates from ``anchor`` up to and including ``until``."""
    step = SERIES_STEPS[pattern]
    dates = [anchor]
    index = 1

    while True:
        # Always step from the anchor so month-end clamping does not drift.
        current = anchor + step * index
        if current > until:
            break
        dates.append(current)
        index += 1

    return dates


def _make_entry(request: BookingRequest, day: date, index: int) -> BookingEntry:
    session_type = request.session_type
    return BookingEntry(
        provider_id=request.provider_id,
        session_type_id=session_type.session_type_id,
        date=day,
        time=request.time,
        duration_minutes=session_type.duration_minutes,
        credit_cost=session_type.credit_cost,
        occurrence_index=index,
    )


def settle_series(
    entries: Iterable[BookingEntry],
    balance: int,
    is_available: Optional[Callable[[BookingEntry], bool]] = None
) -> SeriesSettlement:
    """
    Authorize a series entry by entry against a running balance.

    Best effort: entries are accepted in order until one cannot be held
    (``is_available`` returns False) or cannot be paid for. That entry is
    reported as failed, with the reason and any shortfall, and the rest
    of the series is skipped. Accepted entries stand.
    """
    entries = list(entries)
    accepted = []
    remaining = balance

    for position, entry in enumerate(entries):
        if is_available is not None and not is_available(entry):
            logger.info(
                "Series stopped at occurrence %d on %s: provider unavailable",
                entry.occurrence_index,
                entry.date,
            )
            return SeriesSettlement(
                accepted=accepted,
                remaining_balance=remaining,
                failed_entry=entry,
                skipped=entries[position + 1:],
                reason=STOP_PROVIDER_UNAVAILABLE,
            )

        decision = authorize(remaining, entry.credit_cost)
        if not decision.authorized:
            logger.info(
                "Series stopped at occurrence %d on %s: short by %d credit(s)",
                entry.occurrence_index,
                entry.date,
                decision.shortfall,
            )
            return SeriesSettlement(
                accepted=accepted,
                remaining_balance=remaining,
                failed_entry=entry,
                shortfall=decision.shortfall,
                skipped=entries[position + 1:],
                reason=STOP_INSUFFICIENT_CREDITS,
            )
        accepted.append(entry)
        remaining -= entry.credit_cost

    return SeriesSettlement(accepted=accepted, remaining_balance=remaining)
