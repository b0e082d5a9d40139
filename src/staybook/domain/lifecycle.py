"""Reservation-request status transitions and their preconditions.

    SUBMITTED --accept--> ACCEPTED --cancel--> CANCELLED
    SUBMITTED --competing accept--> DECLINED
    SUBMITTED --delete--> (removed)

Checks run in a fixed order: existence, ownership, status, time window.
Every function here is pure; persistence and remote calls belong to the
service layer.
"""

from __future__ import annotations

from datetime import date, timedelta

from staybook.domain.errors import AuthorizationError, NotFoundError, StateError, ValidationError
from staybook.domain.reservation_requests import (
    AcceptancePolicy,
    AccommodationInfo,
    NewReservationRequest,
    ReservationRequest,
    ReservationStatus,
)
from staybook.infra.time import months_before

# Guests may cancel an accepted stay until its start is this far in the past.
CANCELLATION_GRACE_MONTHS = 1


def validate_new_request(new_request: NewReservationRequest, *, today: date) -> None:
    """Reject a create before any I/O happens.

    Raises:
        ValidationError: Start date in the past or non-positive night count.
    """
    if new_request.start_date < today:
        raise ValidationError("Start date cannot be in past")
    if new_request.number_of_days <= 0:
        raise ValidationError("Number of days must be positive")


def end_date_for(start_date: date, nights: int) -> date:
    return start_date + timedelta(days=nights)


def initial_status(policy: AcceptancePolicy) -> ReservationStatus:
    """Status a new request starts in under the accommodation's policy."""
    if policy is AcceptancePolicy.AUTOMATIC:
        return ReservationStatus.ACCEPTED
    return ReservationStatus.SUBMITTED


def build_request(
    new_request: NewReservationRequest,
    accommodation: AccommodationInfo,
) -> ReservationRequest:
    """Materialise an unsaved ReservationRequest from guest input."""
    return ReservationRequest(
        start_date=new_request.start_date,
        end_date=end_date_for(new_request.start_date, new_request.number_of_days),
        accommodation_id=new_request.accommodation_id,
        guest_id=new_request.guest_id,
        owner_id=accommodation.owner_id,
        guest_number=new_request.guest_number,
        status=initial_status(accommodation.accept_reservation_type),
        accommodation_name=accommodation.name,
    )


def _require_found(request: ReservationRequest | None, request_id: str) -> ReservationRequest:
    if request is None:
        raise NotFoundError(request_id)
    return request


def check_can_accept(
    request: ReservationRequest | None,
    *,
    request_id: str,
    host_id: int,
) -> ReservationRequest:
    """Preconditions for a host accepting a submitted request."""
    request = _require_found(request, request_id)
    if request.owner_id != host_id:
        raise AuthorizationError("You can not access to this entity.")
    if request.status is not ReservationStatus.SUBMITTED:
        raise StateError(
            f"You cannot update given reservation request - wrong status {request.status.value}."
        )
    return request


def cancellation_cutoff(today: date) -> date:
    """Start dates on or before this day can no longer be cancelled."""
    return months_before(today, CANCELLATION_GRACE_MONTHS)


def check_can_cancel(
    request: ReservationRequest | None,
    *,
    request_id: str,
    guest_id: int,
    today: date,
) -> ReservationRequest:
    """Preconditions for a guest cancelling an accepted request.

    The stay may already have started; cancellation is refused once the
    start date is one month or more in the past.
    """
    request = _require_found(request, request_id)
    if request.guest_id != guest_id:
        raise AuthorizationError("You can not access to this entity")
    if request.status is not ReservationStatus.ACCEPTED:
        raise StateError(
            f"You cannot cancel given reservation request - wrong status {request.status.value}"
        )
    if request.start_date <= cancellation_cutoff(today):
        raise StateError("It is not possible to cancel reservation.")
    return request


def check_can_delete(
    request: ReservationRequest | None,
    *,
    request_id: str,
    guest_id: int,
) -> ReservationRequest:
    """Preconditions for a guest withdrawing a request nobody accepted yet."""
    request = _require_found(request, request_id)
    if request.guest_id != guest_id:
        raise AuthorizationError("You cannot access given entity.")
    if request.status is not ReservationStatus.SUBMITTED:
        raise StateError(
            "Reservation request can not be deleted - only reservation request "
            "with status SUBMITTED can be deleted."
        )
    return request
