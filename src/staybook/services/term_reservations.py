"""Reserved-term coordination with the accommodation service.

Local state wins. The service first commits a status change locally and
only then mirrors it on the accommodation side:

1. ACCEPTED locally  -> attach_external_term(): create the reserved term and
   store its id on the request.
2. CANCELLED locally -> release_external_term(): delete the reserved term.

A failure in step 2 of either protocol is logged and reported as an
outcome, never raised, and never rolls back the local transition. Accepted
requests left without a term id are picked up again by reconcile().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from staybook.clients.accommodation import ReservedTermError
from staybook.domain.errors import ReservationRequestError
from staybook.domain.reservation_requests import (
    ReservationRepository,
    ReservationRequest,
    ReservationStatus,
)
from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context

logger = get_logger(__name__)

AttachOutcome = Literal["attached", "failed", "skipped"]


class ReservedTermGateway(Protocol):
    def create_reserved_term(self, request: ReservationRequest) -> int: ...

    def delete_reserved_term(self, term_id: int) -> None: ...


@dataclass(frozen=True)
class TermAttachment:
    """Result of one attach attempt."""

    reservation_request_id: str
    outcome: AttachOutcome
    reserved_term_id: int | None = None
    error: str | None = None


class TermReservationCoordinator:
    """Keeps the accommodation side's reserved terms in step with local status."""

    def __init__(self, repo: ReservationRepository, gateway: ReservedTermGateway) -> None:
        self._repo = repo
        self._gateway = gateway

    def attach_external_term(
        self,
        request_id: str,
        *,
        request: ReservationRequest | None = None,
    ) -> TermAttachment:
        """Create the reserved term for an accepted request and persist its id.

        Safe to call again: requests that already carry a term id, or are no
        longer ACCEPTED, are skipped.

        Args:
            request_id: Reservation request id.
            request: Already-loaded record, to save a repository read.
        """
        if request is None:
            request = self._repo.find_by_id(request_id)
        if request is None or request.status is not ReservationStatus.ACCEPTED:
            return TermAttachment(reservation_request_id=request_id, outcome="skipped")
        if request.reserved_term_id is not None:
            return TermAttachment(
                reservation_request_id=request_id,
                outcome="skipped",
                reserved_term_id=request.reserved_term_id,
            )

        try:
            term_id = self._gateway.create_reserved_term(request)
        except ReservedTermError as e:
            logger.warning(
                "reserved term create failed; request stays accepted without term",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_request_id=request_id,
                        accommodation_id=request.accommodation_id,
                        error=e,
                    )
                },
            )
            return TermAttachment(reservation_request_id=request_id, outcome="failed", error=str(e))

        try:
            self._repo.update_term_id(request_id, term_id)
        except ReservationRequestError as e:
            logger.error(
                "reserved term created but id not stored",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_request_id=request_id,
                        reserved_term_id=term_id,
                        error=e,
                    )
                },
            )
            return TermAttachment(
                reservation_request_id=request_id,
                outcome="failed",
                reserved_term_id=term_id,
                error=str(e),
            )

        request.reserved_term_id = term_id
        logger.info(
            "reserved term attached",
            extra={
                "extra_fields": {
                    "reservation_request_id": request_id,
                    "reserved_term_id": term_id,
                }
            },
        )
        return TermAttachment(
            reservation_request_id=request_id,
            outcome="attached",
            reserved_term_id=term_id,
        )

    def release_external_term(self, request: ReservationRequest) -> bool:
        """Fire-and-forget delete of the request's reserved term.

        Returns:
            True if the accommodation service confirmed the delete.
        """
        if request.reserved_term_id is None:
            logger.warning(
                "cancelled request has no reserved term to release",
                extra={"extra_fields": {"reservation_request_id": request.id}},
            )
            return False

        try:
            self._gateway.delete_reserved_term(request.reserved_term_id)
        except ReservedTermError as e:
            logger.warning(
                "reserved term delete failed; accommodation side may still block the range",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_request_id=request.id,
                        reserved_term_id=request.reserved_term_id,
                        error=e,
                    )
                },
            )
            return False
        return True

    def reconcile(self, limit: int = 100) -> list[TermAttachment]:
        """Retry term attachment for accepted requests still missing one."""
        pending = self._repo.find_accepted_without_term(limit)
        results = [self.attach_external_term(str(r.id), request=r) for r in pending]
        logger.info(
            "reserved term reconciliation finished",
            extra={
                "extra_fields": {
                    "pending": len(pending),
                    "attached": sum(1 for r in results if r.outcome == "attached"),
                    "failed": sum(1 for r in results if r.outcome == "failed"),
                }
            },
        )
        return results
