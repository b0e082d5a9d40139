"""Shared test helpers for the reservation service tests.

In-memory stand-ins for the repository, the accommodation service and the
user service. These are NOT fixtures - they are regular classes.
"""

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import date
from typing import Sequence

from staybook.clients.accommodation import ReservedTermError
from staybook.clients.users import CurrentUser, NotAuthorizedError
from staybook.domain.date_overlap import ranges_overlap
from staybook.domain.errors import AccommodationNotFoundError, NotFoundError
from staybook.domain.reservation_requests import (
    AcceptancePolicy,
    AccommodationInfo,
    AvailableTerm,
    ReservationRequest,
    ReservationStatus,
)

TODAY = date(2026, 1, 1)


class InMemoryReservationRepository:
    """ReservationRepository over a dict; ids are 24-hex counters."""

    def __init__(self, today: date = TODAY) -> None:
        self.rows: dict[str, ReservationRequest] = {}
        self.today = today
        self.delete_result: bool | None = None
        self._ids = itertools.count(1)

    def add(self, request: ReservationRequest) -> ReservationRequest:
        return self.insert(request)

    def insert(self, request: ReservationRequest) -> ReservationRequest:
        request.id = f"{next(self._ids):024x}"
        self.rows[request.id] = replace(request)
        return request

    def find_by_id(self, request_id: str) -> ReservationRequest | None:
        row = self.rows.get(request_id)
        return replace(row) if row else None

    def delete_by_id(self, request_id: str) -> bool:
        if self.delete_result is not None:
            return self.delete_result
        return self.rows.pop(request_id, None) is not None

    def _where(self, predicate) -> list[ReservationRequest]:
        return sorted(
            (replace(r) for r in self.rows.values() if predicate(r)),
            key=lambda r: r.start_date,
        )

    def find_accepted_by_accommodation(self, accommodation_id: int) -> list[ReservationRequest]:
        return self._where(
            lambda r: r.accommodation_id == accommodation_id
            and r.status is ReservationStatus.ACCEPTED
        )

    def find_active_by_guest(self, guest_id: int) -> list[ReservationRequest]:
        return self._where(
            lambda r: r.guest_id == guest_id
            and r.status is ReservationStatus.ACCEPTED
            and r.end_date >= self.today
        )

    def find_active_by_owner(self, owner_id: int) -> list[ReservationRequest]:
        return self._where(
            lambda r: r.owner_id == owner_id
            and r.status is ReservationStatus.ACCEPTED
            and r.end_date >= self.today
        )

    def find_all_by_guest(self, guest_id: int) -> list[ReservationRequest]:
        return self._where(lambda r: r.guest_id == guest_id)

    def find_by_owner_and_statuses(
        self, owner_id: int, statuses: Sequence[ReservationStatus]
    ) -> list[ReservationRequest]:
        return self._where(lambda r: r.owner_id == owner_id and r.status in statuses)

    def decline_overlapping(
        self,
        accommodation_id: int,
        start_date: date,
        end_date: date,
        *,
        exclude_id: str | None = None,
    ) -> int:
        declined = 0
        for row in self.rows.values():
            if (
                row.accommodation_id == accommodation_id
                and row.status is ReservationStatus.SUBMITTED
                and row.id != exclude_id
                and ranges_overlap(start_date, end_date, row.start_date, row.end_date)
            ):
                row.status = ReservationStatus.DECLINED
                declined += 1
        return declined

    def update_status(self, request_id: str, status: ReservationStatus) -> ReservationRequest:
        if request_id not in self.rows:
            raise NotFoundError(request_id)
        self.rows[request_id].status = status
        return replace(self.rows[request_id])

    def update_term_id(self, request_id: str, term_id: int) -> ReservationRequest:
        if request_id not in self.rows:
            raise NotFoundError(request_id)
        self.rows[request_id].reserved_term_id = term_id
        return replace(self.rows[request_id])

    def count_by_guest_and_status(self, guest_id: int, status: ReservationStatus) -> int:
        return len(self._where(lambda r: r.guest_id == guest_id and r.status is status))

    def exists_past_stay_with_owner(self, guest_id: int, owner_id: int, today: date) -> bool:
        return bool(
            self._where(
                lambda r: r.guest_id == guest_id
                and r.owner_id == owner_id
                and r.status is ReservationStatus.ACCEPTED
                and r.start_date < today
            )
        )

    def exists_past_stay_at_accommodation(
        self, guest_id: int, accommodation_id: int, today: date
    ) -> bool:
        return bool(
            self._where(
                lambda r: r.guest_id == guest_id
                and r.accommodation_id == accommodation_id
                and r.status is ReservationStatus.ACCEPTED
                and r.start_date < today
            )
        )

    def find_accepted_without_term(self, limit: int) -> list[ReservationRequest]:
        return self._where(
            lambda r: r.status is ReservationStatus.ACCEPTED and r.reserved_term_id is None
        )[:limit]


class FakeAccommodationService:
    """Accommodation service double: oracle plus reserved-term gateway."""

    def __init__(self, accommodations: Sequence[AccommodationInfo] = ()) -> None:
        self.accommodations = {a.id: a for a in accommodations}
        self.created_terms: list[ReservationRequest] = []
        self.deleted_terms: list[int] = []
        self.fail_create = False
        self.fail_delete = False
        self._term_ids = itertools.count(100)

    def fetch_accommodation(self, accommodation_id: int) -> AccommodationInfo:
        try:
            return self.accommodations[accommodation_id]
        except KeyError:
            raise AccommodationNotFoundError(f"Accommodation {accommodation_id} does not exist")

    def create_reserved_term(self, request: ReservationRequest) -> int:
        if self.fail_create:
            raise ReservedTermError("reserved term create failed: connection refused")
        self.created_terms.append(replace(request))
        return next(self._term_ids)

    def delete_reserved_term(self, term_id: int) -> None:
        if self.fail_delete:
            raise ReservedTermError("reserved term delete failed: timeout")
        self.deleted_terms.append(term_id)


class FakeAuthorizer:
    """Maps bearer tokens to users; unknown tokens are refused."""

    def __init__(self, users: dict[str, CurrentUser]) -> None:
        self.users = users
        self.calls: list[tuple[str, str]] = []

    def resolve(self, authorization: str, role: str) -> CurrentUser:
        self.calls.append((authorization, role))
        token = authorization.split()[-1]
        if token not in self.users:
            raise NotAuthorizedError(f"user is not a {role.lower()}")
        return self.users[token]


def make_accommodation(
    accommodation_id: int = 1,
    *,
    owner_id: int = 10,
    policy: AcceptancePolicy = AcceptancePolicy.MANUAL,
    terms: Sequence[tuple[date, date]] = ((date(2026, 1, 1), date(2026, 12, 31)),),
    name: str = "Lake House",
) -> AccommodationInfo:
    return AccommodationInfo(
        id=accommodation_id,
        owner_id=owner_id,
        name=name,
        min_guests=1,
        max_guests=4,
        accept_reservation_type=policy,
        available_terms=tuple(AvailableTerm(start, end) for start, end in terms),
    )


def make_request(
    start: date,
    end: date,
    *,
    status: ReservationStatus = ReservationStatus.SUBMITTED,
    accommodation_id: int = 1,
    guest_id: int = 20,
    owner_id: int = 10,
    reserved_term_id: int | None = None,
) -> ReservationRequest:
    return ReservationRequest(
        start_date=start,
        end_date=end,
        accommodation_id=accommodation_id,
        guest_id=guest_id,
        owner_id=owner_id,
        guest_number=2,
        status=status,
        accommodation_name="Lake House",
        reserved_term_id=reserved_term_id,
    )
