"""Availability test against the accommodation's open terms.

A requested stay is bookable only if every night in [start, start + nights)
falls inside some open term. Terms are half-open and need not be merged:
a stay may span two adjacent terms.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from staybook.domain.errors import AvailabilityError
from staybook.domain.reservation_requests import AvailableTerm


def is_date_in_available_terms(day: date, terms: Iterable[AvailableTerm]) -> bool:
    """Return True if some term covers the day."""
    return any(term.covers(day) for term in terms)


def stay_days(start_date: date, nights: int) -> list[date]:
    """Calendar days occupied by a stay of `nights` nights."""
    return [start_date + timedelta(days=i) for i in range(nights)]


def first_uncovered_day(
    start_date: date,
    nights: int,
    terms: Iterable[AvailableTerm],
) -> date | None:
    """Return the first day of the stay not covered by any term, or None."""
    terms = tuple(terms)
    for day in stay_days(start_date, nights):
        if not is_date_in_available_terms(day, terms):
            return day
    return None


def assert_available(
    start_date: date,
    nights: int,
    terms: Iterable[AvailableTerm],
) -> None:
    """Raise AvailabilityError if any night of the stay is not open."""
    if first_uncovered_day(start_date, nights, terms) is not None:
        raise AvailabilityError("Accommodation is not available")
