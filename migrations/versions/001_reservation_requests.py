"""Reservation requests table (SQL-only).

Revision ID: 001_reservation_requests
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op


# revision identifiers, used by Alembic.
revision = "001_reservation_requests"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TYPE reservation_request_status AS ENUM (
            'SUBMITTED', 'ACCEPTED', 'DECLINED', 'CANCELLED'
        )
        """
    )
    op.execute(
        """
        CREATE TABLE reservation_requests (
            id                 char(24) PRIMARY KEY,
            start_date         date NOT NULL,
            end_date           date NOT NULL,
            accommodation_id   bigint NOT NULL,
            guest_id           bigint NOT NULL,
            owner_id           bigint NOT NULL,
            guest_number       integer NOT NULL,
            status             reservation_request_status NOT NULL,
            reserved_term_id   bigint,
            accommodation_name text NOT NULL DEFAULT '',
            created_at         timestamptz NOT NULL DEFAULT now(),
            updated_at         timestamptz NOT NULL DEFAULT now(),
            CONSTRAINT reservation_requests_nights_positive CHECK (end_date > start_date)
        )
        """
    )
    op.execute(
        "CREATE INDEX ix_reservation_requests_accommodation_status "
        "ON reservation_requests (accommodation_id, status)"
    )
    op.execute(
        "CREATE INDEX ix_reservation_requests_guest_status "
        "ON reservation_requests (guest_id, status)"
    )
    op.execute(
        "CREATE INDEX ix_reservation_requests_owner_status "
        "ON reservation_requests (owner_id, status)"
    )
    op.execute(
        "CREATE INDEX ix_reservation_requests_accepted_without_term "
        "ON reservation_requests (start_date) "
        "WHERE status = 'ACCEPTED' AND reserved_term_id IS NULL"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reservation_requests")
    op.execute("DROP TYPE IF EXISTS reservation_request_status")
