"""Date-range overlap and accepted-conflict detection.

Overlap formula for half-open ranges [s1, e1) and [s2, e2):

    s1 < e2 AND s2 < e1

Strict inequality lets a stay start on the day another one ends.

The same rule drives the in-memory check at submission time and the SQL
predicate used by the bulk decline at accept time, so both stay in sync.
"""

from __future__ import annotations

from datetime import date

from staybook.domain.errors import ConflictError
from staybook.domain.reservation_requests import ReservationRequest, ReservationRepository
from staybook.observability.logging import get_logger

logger = get_logger(__name__)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Return True if [start_a, end_a) and [start_b, end_b) share a day."""
    return start_a < end_b and start_b < end_a


def overlap_sql(start_column: str = "start_date", end_column: str = "end_date") -> str:
    """SQL fragment for the overlap rule.

    Expects parameters in the order (new_end, new_start).
    """
    return f"{start_column} < %s AND {end_column} > %s"


def find_accepted_overlaps(
    repo: ReservationRepository,
    *,
    accommodation_id: int,
    start_date: date,
    end_date: date,
) -> list[ReservationRequest]:
    """Return every accepted request on the accommodation overlapping the range."""
    accepted = repo.find_accepted_by_accommodation(accommodation_id)
    return [
        existing
        for existing in accepted
        if ranges_overlap(start_date, end_date, existing.start_date, existing.end_date)
    ]


def assert_no_accepted_overlap(
    repo: ReservationRepository,
    *,
    accommodation_id: int,
    start_date: date,
    end_date: date,
) -> None:
    """Raise ConflictError if an accepted request overlaps the range.

    Not atomic with the following insert: two concurrent submissions can
    both pass. The accept-time decline resolves that race.
    """
    overlaps = find_accepted_overlaps(
        repo,
        accommodation_id=accommodation_id,
        start_date=start_date,
        end_date=end_date,
    )
    if not overlaps:
        return

    conflicting = overlaps[0]
    logger.warning(
        "accepted reservation overlap detected",
        extra={
            "extra_fields": {
                "accommodation_id": accommodation_id,
                "requested_start": start_date.isoformat(),
                "requested_end": end_date.isoformat(),
                "conflicting_request_id": conflicting.id,
                "existing_start": conflicting.start_date.isoformat(),
                "existing_end": conflicting.end_date.isoformat(),
            },
        },
    )
    raise ConflictError(conflicting_request_id=str(conflicting.id))
