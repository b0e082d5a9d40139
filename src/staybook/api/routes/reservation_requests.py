"""Reservation request endpoints.

Guests create, list, cancel and withdraw requests; hosts accept them and
read their guests' history. Domain errors propagate to the exception
handler registered in the app factory.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from staybook.api.auth import require_guest, require_host
from staybook.api.dependencies import get_reservation_service
from staybook.clients.users import CurrentUser
from staybook.domain.reservation_requests import (
    NewReservationRequest,
    ReservationRequest,
    ReservationStatus,
)
from staybook.services.reservation_requests import ReservationRequestService

_REQUEST_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


class CreateReservationRequestBody(BaseModel):
    """Request body for create. Dates may be ISO dates or RFC 3339 timestamps."""

    model_config = ConfigDict(populate_by_name=True)

    start_date: date = Field(alias="startDate")
    number_of_days: int = Field(alias="numberOfDays")
    accommodation_id: int = Field(alias="accommodationID")
    guest_number: int = Field(default=1, alias="guestNumber")

    @field_validator("start_date", mode="before")
    @classmethod
    def _truncate_timestamp(cls, value: Any) -> Any:
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value


router = APIRouter(prefix="/api/reservationRequest", tags=["reservation-requests"])


def _wire_date(day: date) -> str:
    return f"{day.isoformat()}T00:00:00Z"


def _to_dto(request: ReservationRequest) -> dict:
    return {
        "id": request.id,
        "status": request.status.value,
        "guestID": request.guest_id,
        "accommodationID": request.accommodation_id,
        "startDate": _wire_date(request.start_date),
        "endDate": _wire_date(request.end_date),
        "guestNumber": request.guest_number,
        "accommodationName": request.accommodation_name,
    }


def _validate_request_id(request_id: str) -> str:
    if not _REQUEST_ID_PATTERN.match(request_id):
        raise HTTPException(
            status_code=400,
            detail="the provided hex string is not a valid reservation request id",
        )
    return request_id.lower()


def _parse_statuses(raw: str | None) -> list[ReservationStatus] | None:
    if not raw:
        return None
    try:
        return [ReservationStatus(part.strip().upper()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown status: {raw}")


@router.post("")
def create_reservation_request(
    body: CreateReservationRequestBody,
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> dict:
    """Submit a stay request as the authenticated guest."""
    created = service.create(
        NewReservationRequest(
            start_date=body.start_date,
            number_of_days=body.number_of_days,
            accommodation_id=body.accommodation_id,
            guest_id=user.id,
            guest_number=body.guest_number,
        )
    )
    return _to_dto(created)


@router.get("/guest/{guest_id}")
def get_guest_active(
    guest_id: int = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> list[dict]:
    return [_to_dto(r) for r in service.guest_active(guest_id)]


@router.get("/guest/{guest_id}/all")
def get_guest_all(
    guest_id: int = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> list[dict]:
    return [_to_dto(r) for r in service.guest_all(guest_id)]


@router.get("/owner/{owner_id}")
def get_owner_active(
    owner_id: int = Path(...),
    user: CurrentUser = Depends(require_host),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> list[dict]:
    return [_to_dto(r) for r in service.owner_active(owner_id)]


@router.get("/owner/{owner_id}/all")
def get_owner_all(
    owner_id: int = Path(...),
    status: str | None = Query(default=None),
    user: CurrentUser = Depends(require_host),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> list[dict]:
    """Owner's requests, optionally filtered by a comma-separated status list."""
    return [_to_dto(r) for r in service.owner_by_statuses(owner_id, _parse_statuses(status))]


@router.get("/guest/{guest_id}/host/{host_id}")
def get_guest_was_with_host(
    guest_id: int = Path(...),
    host_id: int = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> bool:
    return service.guest_was_hosted_by(guest_id, host_id)


@router.get("/guest/{guest_id}/accomodation/{accommodation_id}")
def get_guest_was_in_accommodation(
    guest_id: int = Path(...),
    accommodation_id: int = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> bool:
    return service.guest_stayed_at(guest_id, accommodation_id)


@router.put("/{request_id}")
def accept_reservation_request(
    request_id: str = Path(...),
    user: CurrentUser = Depends(require_host),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> dict:
    """Accept a submitted request; overlapping submitted requests are declined."""
    accepted = service.accept(_validate_request_id(request_id), user.id)
    return _to_dto(accepted)


@router.put("/{request_id}/cancel")
def cancel_reservation_request(
    request_id: str = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> dict:
    cancelled = service.cancel(_validate_request_id(request_id), user.id)
    return _to_dto(cancelled)


@router.delete("/{request_id}")
def delete_reservation_request(
    request_id: str = Path(...),
    user: CurrentUser = Depends(require_guest),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> dict:
    request_id = _validate_request_id(request_id)
    service.delete(request_id, user.id)
    return {"status": "deleted", "id": request_id}


@router.get("/{guest_id}/cancelled")
def count_guest_cancelled(
    guest_id: int = Path(...),
    user: CurrentUser = Depends(require_host),
    service: ReservationRequestService = Depends(get_reservation_service),
) -> dict:
    """Number of cancelled requests of a guest, used by peer services."""
    return {"count": service.count_cancelled(guest_id)}
