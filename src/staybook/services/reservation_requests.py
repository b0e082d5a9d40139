"""Reservation request service - orchestrates the request lifecycle.

Flows:
- create: validate -> fetch accommodation -> per-day availability ->
  accepted-overlap check -> insert -> (auto-accepted) attach reserved term
- accept: read -> preconditions -> ACCEPTED -> decline overlapping
  SUBMITTED -> attach reserved term
- cancel: read -> preconditions -> CANCELLED -> release reserved term
- delete: read -> preconditions -> hard delete

Submission-time conflict checks and the insert are not atomic. Two guests
can both submit overlapping requests; the first accept declines the other.
Two concurrent accepts on overlapping ranges can still both win; that race
is accepted rather than serialised.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Protocol, Sequence

from staybook.domain.availability import assert_available
from staybook.domain.date_overlap import assert_no_accepted_overlap
from staybook.domain.errors import RepositoryError
from staybook.domain.lifecycle import (
    build_request,
    check_can_accept,
    check_can_cancel,
    check_can_delete,
    validate_new_request,
)
from staybook.domain.reservation_requests import (
    ALL_STATUSES,
    AccommodationInfo,
    NewReservationRequest,
    ReservationRepository,
    ReservationRequest,
    ReservationStatus,
)
from staybook.infra.time import utc_today
from staybook.observability.logging import get_logger
from staybook.services.term_reservations import TermReservationCoordinator

logger = get_logger(__name__)


class AvailabilityOracle(Protocol):
    def fetch_accommodation(self, accommodation_id: int) -> AccommodationInfo: ...


class ReservationRequestService:
    """Entry point for every reservation-request operation."""

    def __init__(
        self,
        repo: ReservationRepository,
        oracle: AvailabilityOracle,
        terms: TermReservationCoordinator,
        *,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._repo = repo
        self._oracle = oracle
        self._terms = terms
        self._today = today

    # ── Commands ─────────────────────────────────────────

    def create(self, new_request: NewReservationRequest) -> ReservationRequest:
        """Submit a stay request; auto-accept under an AUTOMATIC policy.

        Raises:
            ValidationError: Past start date or non-positive nights.
            AvailabilityError: Accommodation fetch failed or range not open.
            ConflictError: An accepted request overlaps the range.
        """
        validate_new_request(new_request, today=self._today())

        accommodation = self._oracle.fetch_accommodation(new_request.accommodation_id)
        assert_available(
            new_request.start_date,
            new_request.number_of_days,
            accommodation.available_terms,
        )

        request = build_request(new_request, accommodation)
        assert_no_accepted_overlap(
            self._repo,
            accommodation_id=request.accommodation_id,
            start_date=request.start_date,
            end_date=request.end_date,
        )

        saved = self._repo.insert(request)
        logger.info(
            "reservation request created",
            extra={
                "extra_fields": {
                    "reservation_request_id": saved.id,
                    "accommodation_id": saved.accommodation_id,
                    "status": saved.status.value,
                    "nights": saved.nights,
                }
            },
        )

        if saved.status is ReservationStatus.ACCEPTED:
            self._terms.attach_external_term(str(saved.id), request=saved)

        return saved

    def accept(self, request_id: str, host_id: int) -> ReservationRequest:
        """Accept a submitted request and decline every SUBMITTED competitor.

        Raises:
            NotFoundError, AuthorizationError, StateError.
        """
        request = check_can_accept(
            self._repo.find_by_id(request_id),
            request_id=request_id,
            host_id=host_id,
        )

        accepted = self._repo.update_status(request_id, ReservationStatus.ACCEPTED)
        declined = self._repo.decline_overlapping(
            request.accommodation_id,
            request.start_date,
            request.end_date,
            exclude_id=request_id,
        )
        logger.info(
            "reservation request accepted",
            extra={
                "extra_fields": {
                    "reservation_request_id": request_id,
                    "accommodation_id": request.accommodation_id,
                    "declined_count": declined,
                }
            },
        )

        self._terms.attach_external_term(request_id, request=accepted)
        return accepted

    def cancel(self, request_id: str, guest_id: int) -> ReservationRequest:
        """Cancel an accepted request and release its reserved term.

        Raises:
            NotFoundError, AuthorizationError, StateError.
        """
        request = check_can_cancel(
            self._repo.find_by_id(request_id),
            request_id=request_id,
            guest_id=guest_id,
            today=self._today(),
        )

        cancelled = self._repo.update_status(request_id, ReservationStatus.CANCELLED)
        if cancelled.reserved_term_id is None:
            cancelled.reserved_term_id = request.reserved_term_id
        logger.info(
            "reservation request cancelled",
            extra={"extra_fields": {"reservation_request_id": request_id}},
        )

        self._terms.release_external_term(cancelled)
        return cancelled

    def delete(self, request_id: str, guest_id: int) -> None:
        """Withdraw a request that was never accepted.

        Raises:
            NotFoundError, AuthorizationError, StateError, RepositoryError.
        """
        check_can_delete(
            self._repo.find_by_id(request_id),
            request_id=request_id,
            guest_id=guest_id,
        )
        if not self._repo.delete_by_id(request_id):
            raise RepositoryError("It's not possible to delete reservation request")
        logger.info(
            "reservation request deleted",
            extra={"extra_fields": {"reservation_request_id": request_id}},
        )

    # ── Queries ──────────────────────────────────────────

    def guest_active(self, guest_id: int) -> list[ReservationRequest]:
        return self._repo.find_active_by_guest(guest_id)

    def guest_all(self, guest_id: int) -> list[ReservationRequest]:
        return self._repo.find_all_by_guest(guest_id)

    def owner_active(self, owner_id: int) -> list[ReservationRequest]:
        return self._repo.find_active_by_owner(owner_id)

    def owner_by_statuses(
        self,
        owner_id: int,
        statuses: Sequence[ReservationStatus] | None = None,
    ) -> list[ReservationRequest]:
        """Owner's requests in the given statuses (all statuses when None)."""
        return self._repo.find_by_owner_and_statuses(owner_id, statuses or ALL_STATUSES)

    def count_cancelled(self, guest_id: int) -> int:
        return self._repo.count_by_guest_and_status(guest_id, ReservationStatus.CANCELLED)

    def guest_was_hosted_by(self, guest_id: int, host_id: int) -> bool:
        return self._repo.exists_past_stay_with_owner(guest_id, host_id, self._today())

    def guest_stayed_at(self, guest_id: int, accommodation_id: int) -> bool:
        return self._repo.exists_past_stay_at_accommodation(
            guest_id, accommodation_id, self._today()
        )
