"""Unit tests for date-range overlap and accepted-conflict detection."""

from datetime import date

import pytest

from staybook.domain.date_overlap import (
    assert_no_accepted_overlap,
    find_accepted_overlaps,
    overlap_sql,
    ranges_overlap,
)
from staybook.domain.errors import ConflictError
from staybook.domain.reservation_requests import ReservationStatus

from tests.helpers import InMemoryReservationRepository, make_request


class TestRangesOverlap:
    """Half-open [start, end) overlap rule."""

    def test_contained_range_overlaps(self):
        assert ranges_overlap(date(2026, 1, 3), date(2026, 1, 5), date(2026, 1, 1), date(2026, 1, 10))

    def test_partial_overlap_at_start(self):
        assert ranges_overlap(date(2026, 1, 1), date(2026, 1, 4), date(2026, 1, 3), date(2026, 1, 8))

    def test_partial_overlap_at_end(self):
        assert ranges_overlap(date(2026, 1, 6), date(2026, 1, 12), date(2026, 1, 3), date(2026, 1, 8))

    def test_back_to_back_does_not_overlap(self):
        assert not ranges_overlap(date(2026, 1, 5), date(2026, 1, 8), date(2026, 1, 1), date(2026, 1, 5))
        assert not ranges_overlap(date(2026, 1, 1), date(2026, 1, 5), date(2026, 1, 5), date(2026, 1, 8))

    def test_disjoint_ranges(self):
        assert not ranges_overlap(date(2026, 1, 1), date(2026, 1, 3), date(2026, 2, 1), date(2026, 2, 3))

    def test_identical_ranges_overlap(self):
        assert ranges_overlap(date(2026, 1, 1), date(2026, 1, 3), date(2026, 1, 1), date(2026, 1, 3))


def test_overlap_sql_uses_strict_inequalities():
    assert overlap_sql() == "start_date < %s AND end_date > %s"
    assert overlap_sql("r.start_date", "r.end_date") == "r.start_date < %s AND r.end_date > %s"


class TestAcceptedOverlap:
    """Only ACCEPTED requests on the same accommodation block a new range."""

    @pytest.fixture
    def repo(self):
        return InMemoryReservationRepository()

    def test_submitted_request_does_not_block(self, repo):
        repo.add(make_request(date(2026, 1, 10), date(2026, 1, 15)))

        assert_no_accepted_overlap(
            repo, accommodation_id=1, start_date=date(2026, 1, 12), end_date=date(2026, 1, 14)
        )

    def test_accepted_request_on_other_accommodation_does_not_block(self, repo):
        repo.add(
            make_request(
                date(2026, 1, 10),
                date(2026, 1, 15),
                status=ReservationStatus.ACCEPTED,
                accommodation_id=2,
            )
        )

        assert find_accepted_overlaps(
            repo, accommodation_id=1, start_date=date(2026, 1, 12), end_date=date(2026, 1, 14)
        ) == []

    def test_accepted_overlap_raises_conflict(self, repo):
        existing = repo.add(
            make_request(date(2026, 1, 10), date(2026, 1, 15), status=ReservationStatus.ACCEPTED)
        )

        with pytest.raises(ConflictError) as exc_info:
            assert_no_accepted_overlap(
                repo, accommodation_id=1, start_date=date(2026, 1, 14), end_date=date(2026, 1, 20)
            )

        assert exc_info.value.conflicting_request_id == existing.id
        assert exc_info.value.status_code == 409
        assert "reserved already" in str(exc_info.value)

    def test_accepted_back_to_back_is_allowed(self, repo):
        repo.add(make_request(date(2026, 1, 10), date(2026, 1, 15), status=ReservationStatus.ACCEPTED))

        assert_no_accepted_overlap(
            repo, accommodation_id=1, start_date=date(2026, 1, 15), end_date=date(2026, 1, 18)
        )
