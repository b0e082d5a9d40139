"""Reservation requests repository - persistence for reservation_requests.

Uses raw SQL with psycopg2 (no ORM). Module-level functions take a cursor so
callers can compose them inside one transaction; PostgresReservationRepository
wraps each in its own short transaction for the service layer and reports
driver failures as RepositoryError.
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import cursor as PgCursor

from staybook.domain.date_overlap import overlap_sql
from staybook.domain.errors import NotFoundError, RepositoryError
from staybook.domain.reservation_requests import ReservationRequest, ReservationStatus
from staybook.infra.db import fetchall, fetchone, txn
from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context

logger = get_logger(__name__)

_COLUMNS = """
    id, start_date, end_date, accommodation_id, guest_id, owner_id,
    guest_number, status, reserved_term_id, accommodation_name
"""


def new_request_id() -> str:
    """Opaque 24-hex-character record id."""
    return secrets.token_hex(12)


def _row_to_request(row: tuple[Any, ...]) -> ReservationRequest:
    return ReservationRequest(
        id=str(row[0]),
        start_date=row[1],
        end_date=row[2],
        accommodation_id=row[3],
        guest_id=row[4],
        owner_id=row[5],
        guest_number=row[6],
        status=ReservationStatus(row[7]),
        reserved_term_id=row[8],
        accommodation_name=row[9] or "",
    )


def _select(cur: PgCursor, where: str, params: Sequence[Any], suffix: str = "") -> list[ReservationRequest]:
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM reservation_requests
        WHERE {where}
        ORDER BY start_date
        {suffix}
        """,
        params,
    )
    return [_row_to_request(row) for row in rows]


def insert_request(cur: PgCursor, request: ReservationRequest) -> ReservationRequest:
    """Insert a reservation request, assigning its id.

    Returns:
        The stored request (id populated).
    """
    row = fetchone(
        cur,
        """
        INSERT INTO reservation_requests (
            id, start_date, end_date, accommodation_id, guest_id, owner_id,
            guest_number, status, reserved_term_id, accommodation_name
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
        """,
        (
            new_request_id(),
            request.start_date,
            request.end_date,
            request.accommodation_id,
            request.guest_id,
            request.owner_id,
            request.guest_number,
            request.status.value,
            request.reserved_term_id,
            request.accommodation_name,
        ),
    )
    if row is None:
        raise RepositoryError("It's not possible to save reservation request")
    request.id = str(row[0])
    return request


def get_request(cur: PgCursor, request_id: str) -> ReservationRequest | None:
    rows = _select(cur, "id = %s", (request_id,))
    return rows[0] if rows else None


def delete_request(cur: PgCursor, request_id: str) -> bool:
    cur.execute("DELETE FROM reservation_requests WHERE id = %s", (request_id,))
    return cur.rowcount == 1


def list_accepted_for_accommodation(cur: PgCursor, accommodation_id: int) -> list[ReservationRequest]:
    return _select(
        cur,
        "accommodation_id = %s AND status = %s",
        (accommodation_id, ReservationStatus.ACCEPTED.value),
    )


def list_active_for(cur: PgCursor, column: str, user_id: int) -> list[ReservationRequest]:
    """Accepted requests whose stay has not ended, keyed by guest_id or owner_id."""
    if column not in ("guest_id", "owner_id"):
        raise ValueError(f"unsupported column: {column}")
    return _select(
        cur,
        f"{column} = %s AND status = %s AND end_date >= CURRENT_DATE",
        (user_id, ReservationStatus.ACCEPTED.value),
    )


def list_for_guest(cur: PgCursor, guest_id: int) -> list[ReservationRequest]:
    return _select(cur, "guest_id = %s", (guest_id,))


def list_for_owner(
    cur: PgCursor,
    owner_id: int,
    statuses: Sequence[ReservationStatus],
) -> list[ReservationRequest]:
    return _select(
        cur,
        "owner_id = %s AND status = ANY(%s::reservation_request_status[])",
        (owner_id, [s.value for s in statuses]),
    )


def decline_overlapping_submitted(
    cur: PgCursor,
    *,
    accommodation_id: int,
    start_date: date,
    end_date: date,
    exclude_id: str | None = None,
) -> int:
    """Bulk-decline SUBMITTED requests on the accommodation overlapping the range.

    Returns:
        Number of requests declined.
    """
    conditions = [
        "accommodation_id = %s",
        "status = %s",
        overlap_sql(),
    ]
    params: list[Any] = [
        accommodation_id,
        ReservationStatus.SUBMITTED.value,
        end_date,
        start_date,
    ]
    if exclude_id is not None:
        conditions.append("id != %s")
        params.append(exclude_id)

    cur.execute(
        f"""
        UPDATE reservation_requests
        SET status = %s, updated_at = now()
        WHERE {" AND ".join(conditions)}
        """,
        [ReservationStatus.DECLINED.value, *params],
    )
    return cur.rowcount


def set_status(cur: PgCursor, request_id: str, status: ReservationStatus) -> ReservationRequest | None:
    row = fetchone(
        cur,
        f"""
        UPDATE reservation_requests
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (status.value, request_id),
    )
    return _row_to_request(row) if row else None


def set_reserved_term(cur: PgCursor, request_id: str, term_id: int) -> ReservationRequest | None:
    row = fetchone(
        cur,
        f"""
        UPDATE reservation_requests
        SET reserved_term_id = %s, updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (term_id, request_id),
    )
    return _row_to_request(row) if row else None


def count_for_guest(cur: PgCursor, guest_id: int, status: ReservationStatus) -> int:
    row = fetchone(
        cur,
        "SELECT count(*) FROM reservation_requests WHERE guest_id = %s AND status = %s",
        (guest_id, status.value),
    )
    return int(row[0]) if row else 0


def has_past_accepted_stay(cur: PgCursor, *, guest_id: int, column: str, value: int, today: date) -> bool:
    """True if the guest has an accepted stay that started before today."""
    if column not in ("owner_id", "accommodation_id"):
        raise ValueError(f"unsupported column: {column}")
    row = fetchone(
        cur,
        f"""
        SELECT 1 FROM reservation_requests
        WHERE guest_id = %s AND {column} = %s AND status = %s AND start_date < %s
        LIMIT 1
        """,
        (guest_id, value, ReservationStatus.ACCEPTED.value, today),
    )
    return row is not None


def list_accepted_without_term(cur: PgCursor, limit: int) -> list[ReservationRequest]:
    return _select(
        cur,
        "status = %s AND reserved_term_id IS NULL",
        (ReservationStatus.ACCEPTED.value, limit),
        suffix="LIMIT %s",
    )


@contextmanager
def _repository_txn(operation: str) -> Iterator[PgCursor]:
    """txn() that reports driver failures as RepositoryError."""
    try:
        with txn() as cur:
            yield cur
    except psycopg2.Error as e:
        logger.error(
            "reservation request repository failure",
            extra={"extra_fields": safe_log_context(operation=operation, error=e)},
        )
        raise RepositoryError(f"Reservation request storage failed during {operation}") from e


class PostgresReservationRepository:
    """ReservationRepository backed by Postgres, one transaction per call."""

    def insert(self, request: ReservationRequest) -> ReservationRequest:
        with _repository_txn("insert") as cur:
            return insert_request(cur, request)

    def find_by_id(self, request_id: str) -> ReservationRequest | None:
        with _repository_txn("find_by_id") as cur:
            return get_request(cur, request_id)

    def delete_by_id(self, request_id: str) -> bool:
        with _repository_txn("delete_by_id") as cur:
            return delete_request(cur, request_id)

    def find_accepted_by_accommodation(self, accommodation_id: int) -> list[ReservationRequest]:
        with _repository_txn("find_accepted_by_accommodation") as cur:
            return list_accepted_for_accommodation(cur, accommodation_id)

    def find_active_by_guest(self, guest_id: int) -> list[ReservationRequest]:
        with _repository_txn("find_active_by_guest") as cur:
            return list_active_for(cur, "guest_id", guest_id)

    def find_active_by_owner(self, owner_id: int) -> list[ReservationRequest]:
        with _repository_txn("find_active_by_owner") as cur:
            return list_active_for(cur, "owner_id", owner_id)

    def find_all_by_guest(self, guest_id: int) -> list[ReservationRequest]:
        with _repository_txn("find_all_by_guest") as cur:
            return list_for_guest(cur, guest_id)

    def find_by_owner_and_statuses(
        self, owner_id: int, statuses: Sequence[ReservationStatus]
    ) -> list[ReservationRequest]:
        with _repository_txn("find_by_owner_and_statuses") as cur:
            return list_for_owner(cur, owner_id, statuses)

    def decline_overlapping(
        self,
        accommodation_id: int,
        start_date: date,
        end_date: date,
        *,
        exclude_id: str | None = None,
    ) -> int:
        with _repository_txn("decline_overlapping") as cur:
            return decline_overlapping_submitted(
                cur,
                accommodation_id=accommodation_id,
                start_date=start_date,
                end_date=end_date,
                exclude_id=exclude_id,
            )

    def update_status(self, request_id: str, status: ReservationStatus) -> ReservationRequest:
        with _repository_txn("update_status") as cur:
            updated = set_status(cur, request_id, status)
        if updated is None:
            raise NotFoundError(request_id)
        return updated

    def update_term_id(self, request_id: str, term_id: int) -> ReservationRequest:
        with _repository_txn("update_term_id") as cur:
            updated = set_reserved_term(cur, request_id, term_id)
        if updated is None:
            raise NotFoundError(request_id)
        return updated

    def count_by_guest_and_status(self, guest_id: int, status: ReservationStatus) -> int:
        with _repository_txn("count_by_guest_and_status") as cur:
            return count_for_guest(cur, guest_id, status)

    def exists_past_stay_with_owner(self, guest_id: int, owner_id: int, today: date) -> bool:
        with _repository_txn("exists_past_stay_with_owner") as cur:
            return has_past_accepted_stay(
                cur, guest_id=guest_id, column="owner_id", value=owner_id, today=today
            )

    def exists_past_stay_at_accommodation(
        self, guest_id: int, accommodation_id: int, today: date
    ) -> bool:
        with _repository_txn("exists_past_stay_at_accommodation") as cur:
            return has_past_accepted_stay(
                cur, guest_id=guest_id, column="accommodation_id", value=accommodation_id, today=today
            )

    def find_accepted_without_term(self, limit: int) -> list[ReservationRequest]:
        with _repository_txn("find_accepted_without_term") as cur:
            return list_accepted_without_term(cur, limit)
