"""Tests for reserved-term attach, release and reconciliation."""

from contextlib import contextmanager
from datetime import date
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from staybook.domain.errors import RepositoryError
from staybook.domain.reservation_requests import ReservationStatus
from staybook.infra.repositories.reservation_requests_repository import (
    PostgresReservationRepository,
)
from staybook.services.term_reservations import TermReservationCoordinator

from tests.helpers import FakeAccommodationService, InMemoryReservationRepository, make_request


@pytest.fixture
def repo():
    return InMemoryReservationRepository()


@pytest.fixture
def gateway():
    return FakeAccommodationService()


@pytest.fixture
def coordinator(repo, gateway):
    return TermReservationCoordinator(repo, gateway)


def _accepted(repo, **kwargs):
    return repo.add(
        make_request(date(2026, 2, 1), date(2026, 2, 4), status=ReservationStatus.ACCEPTED, **kwargs)
    )


class TestAttach:
    def test_attaches_and_persists_term_id(self, coordinator, repo, gateway):
        request = _accepted(repo)

        result = coordinator.attach_external_term(request.id)

        assert result.outcome == "attached"
        assert result.reserved_term_id == 100
        assert repo.rows[request.id].reserved_term_id == 100
        assert gateway.created_terms[0].start_date == date(2026, 2, 1)

    def test_skips_missing_request(self, coordinator, gateway):
        result = coordinator.attach_external_term("0" * 24)

        assert result.outcome == "skipped"
        assert gateway.created_terms == []

    def test_skips_non_accepted(self, coordinator, repo, gateway):
        request = repo.add(make_request(date(2026, 2, 1), date(2026, 2, 4)))

        assert coordinator.attach_external_term(request.id).outcome == "skipped"
        assert gateway.created_terms == []

    def test_is_idempotent(self, coordinator, repo, gateway):
        request = _accepted(repo, reserved_term_id=5)

        result = coordinator.attach_external_term(request.id)

        assert result.outcome == "skipped"
        assert result.reserved_term_id == 5
        assert gateway.created_terms == []

    def test_gateway_failure_reports_failed(self, coordinator, repo, gateway):
        gateway.fail_create = True
        request = _accepted(repo)

        result = coordinator.attach_external_term(request.id)

        assert result.outcome == "failed"
        assert "connection refused" in result.error
        assert repo.rows[request.id].status is ReservationStatus.ACCEPTED
        assert repo.rows[request.id].reserved_term_id is None

    def test_store_failure_reports_failed_with_term_id(self, gateway):
        repo = MagicMock()
        repo.update_term_id.side_effect = RepositoryError("write failed")
        coordinator = TermReservationCoordinator(repo, gateway)
        request = make_request(date(2026, 2, 1), date(2026, 2, 4), status=ReservationStatus.ACCEPTED)
        request.id = "b" * 24

        result = coordinator.attach_external_term(request.id, request=request)

        assert result.outcome == "failed"
        assert result.reserved_term_id == 100
        repo.find_by_id.assert_not_called()


class TestRelease:
    def test_release_deletes_term(self, coordinator, repo, gateway):
        request = _accepted(repo, reserved_term_id=9)

        assert coordinator.release_external_term(request) is True
        assert gateway.deleted_terms == [9]

    def test_release_without_term(self, coordinator, repo, gateway):
        request = _accepted(repo)

        assert coordinator.release_external_term(request) is False
        assert gateway.deleted_terms == []

    def test_release_failure_is_swallowed(self, coordinator, repo, gateway):
        gateway.fail_delete = True
        request = _accepted(repo, reserved_term_id=9)

        assert coordinator.release_external_term(request) is False


class TestReconcile:
    def test_attaches_pending_requests(self, coordinator, repo, gateway):
        a = _accepted(repo)
        b = _accepted(repo)
        _accepted(repo, reserved_term_id=3)
        repo.add(make_request(date(2026, 2, 1), date(2026, 2, 4)))

        results = coordinator.reconcile()

        assert sorted(r.reservation_request_id for r in results) == sorted([a.id, b.id])
        assert all(r.outcome == "attached" for r in results)
        assert repo.find_accepted_without_term(10) == []

    def test_respects_limit(self, coordinator, repo):
        for _ in range(3):
            _accepted(repo)

        assert len(coordinator.reconcile(limit=2)) == 2
        assert len(repo.find_accepted_without_term(10)) == 1

    def test_failed_attach_stays_pending(self, coordinator, repo, gateway):
        gateway.fail_create = True
        _accepted(repo)

        results = coordinator.reconcile()

        assert [r.outcome for r in results] == ["failed"]
        assert len(repo.find_accepted_without_term(10)) == 1


def test_storage_outage_after_term_create_reports_failed(gateway):
    """A driver error while storing the term id leaves the request accepted and reports failed."""

    @contextmanager
    def broken_txn():
        raise psycopg2.OperationalError("server closed the connection unexpectedly")
        yield  # pragma: no cover

    request = make_request(date(2026, 2, 1), date(2026, 2, 4), status=ReservationStatus.ACCEPTED)
    request.id = "c" * 24

    with patch("staybook.infra.repositories.reservation_requests_repository.txn", broken_txn):
        coordinator = TermReservationCoordinator(PostgresReservationRepository(), gateway)
        result = coordinator.attach_external_term(request.id, request=request)

    assert result.outcome == "failed"
    assert result.reserved_term_id == 100
    assert "storage failed" in result.error
    assert request.reserved_term_id is None
