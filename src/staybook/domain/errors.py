"""Domain errors for the reservation-request lifecycle.

Every failure of a reservation-request operation is one of these; the API
layer maps each class to an HTTP status. None of them is fatal to the
process.
"""

from __future__ import annotations


class ReservationRequestError(Exception):
    """Base class for reservation-request domain failures."""

    status_code = 400


class ValidationError(ReservationRequestError):
    """Request rejected before any I/O (past start date, non-positive nights)."""


class AvailabilityError(ReservationRequestError):
    """Accommodation could not be fetched or the range is not open."""


class AccommodationNotFoundError(AvailabilityError):
    """Accommodation service has no accommodation with the given id."""

    status_code = 404


class AccommodationUnavailableError(AvailabilityError):
    """Accommodation service could not be reached or returned garbage."""

    status_code = 503


class ConflictError(ReservationRequestError):
    """An accepted request already occupies part of the requested range."""

    status_code = 409

    def __init__(self, conflicting_request_id: str) -> None:
        self.conflicting_request_id = conflicting_request_id
        super().__init__("Accommodation is reserved already")


class AuthorizationError(ReservationRequestError):
    """Caller's role or identity does not permit the operation."""

    status_code = 403


class StateError(ReservationRequestError):
    """Operation not allowed for the request's current status or dates."""


class NotFoundError(ReservationRequestError):
    """No reservation request with the given id."""

    status_code = 404

    def __init__(self, reservation_request_id: str) -> None:
        self.reservation_request_id = reservation_request_id
        super().__init__(f"Reservation request {reservation_request_id} does not exist")


class RepositoryError(ReservationRequestError):
    """Repository reported that a write or delete did not happen."""

    status_code = 500
