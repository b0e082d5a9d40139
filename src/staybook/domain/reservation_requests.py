"""Reservation request model and the repository contract.

A reservation request is a guest's proposal to stay at an accommodation for
[start_date, end_date). The accommodation itself (calendar, policy, owner)
belongs to the accommodation service and is only ever seen here as an
AccommodationInfo snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Protocol, Sequence


class ReservationStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"


ALL_STATUSES = tuple(ReservationStatus)


class AcceptancePolicy(str, Enum):
    """Whether new requests are accepted on submission or wait for the host."""

    MANUAL = "MANUAL"
    AUTOMATIC = "AUTOMATIC"

    @classmethod
    def parse(cls, raw: str | None) -> "AcceptancePolicy":
        # The accommodation service spells it AUTOMATICALLY.
        if raw and raw.upper() in ("AUTOMATIC", "AUTOMATICALLY"):
            return cls.AUTOMATIC
        return cls.MANUAL


@dataclass(frozen=True)
class AvailableTerm:
    """Open interval [start_date, end_date) on the accommodation's calendar."""

    start_date: date
    end_date: date

    def covers(self, day: date) -> bool:
        return self.start_date <= day < self.end_date


@dataclass(frozen=True)
class AccommodationInfo:
    id: int
    owner_id: int
    name: str
    min_guests: int
    max_guests: int
    accept_reservation_type: AcceptancePolicy
    available_terms: tuple[AvailableTerm, ...] = ()


@dataclass(frozen=True)
class NewReservationRequest:
    """Guest input for the create operation."""

    start_date: date
    number_of_days: int
    accommodation_id: int
    guest_id: int
    guest_number: int


@dataclass
class ReservationRequest:
    start_date: date
    end_date: date
    accommodation_id: int
    guest_id: int
    owner_id: int
    guest_number: int
    status: ReservationStatus
    accommodation_name: str = ""
    reserved_term_id: int | None = None
    id: str | None = field(default=None)

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days



class ReservationRepository(Protocol):
    """Durable store for reservation requests.

    The service is the only writer. Implementations must be safe to share
    between concurrent requests.
    """

    def insert(self, request: ReservationRequest) -> ReservationRequest: ...

    def find_by_id(self, request_id: str) -> ReservationRequest | None: ...

    def delete_by_id(self, request_id: str) -> bool: ...

    def find_accepted_by_accommodation(self, accommodation_id: int) -> list[ReservationRequest]: ...

    def find_active_by_guest(self, guest_id: int) -> list[ReservationRequest]: ...

    def find_active_by_owner(self, owner_id: int) -> list[ReservationRequest]: ...

    def find_all_by_guest(self, guest_id: int) -> list[ReservationRequest]: ...

    def find_by_owner_and_statuses(
        self, owner_id: int, statuses: Sequence[ReservationStatus]
    ) -> list[ReservationRequest]: ...

    def decline_overlapping(
        self,
        accommodation_id: int,
        start_date: date,
        end_date: date,
        *,
        exclude_id: str | None = None,
    ) -> int: ...

    def update_status(self, request_id: str, status: ReservationStatus) -> ReservationRequest: ...

    def update_term_id(self, request_id: str, term_id: int) -> ReservationRequest: ...

    def count_by_guest_and_status(self, guest_id: int, status: ReservationStatus) -> int: ...

    def exists_past_stay_with_owner(self, guest_id: int, owner_id: int, today: date) -> bool: ...

    def exists_past_stay_at_accommodation(
        self, guest_id: int, accommodation_id: int, today: date
    ) -> bool: ...

    def find_accepted_without_term(self, limit: int) -> list[ReservationRequest]: ...
