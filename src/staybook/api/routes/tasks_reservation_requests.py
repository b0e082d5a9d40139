"""Worker routes for reserved-term reconciliation.

POST /tasks/reservation-requests/attach-term - retry one term attachment.
POST /tasks/reservation-requests/reconcile-terms - retry every accepted
request still missing a reserved term.
Only accepts requests carrying the internal task secret.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from staybook.api.dependencies import get_term_coordinator
from staybook.api.task_auth import verify_task_auth
from staybook.services.term_reservations import TermReservationCoordinator

router = APIRouter(prefix="/tasks/reservation-requests", tags=["tasks"])


class AttachTermTask(BaseModel):
    reservation_request_id: str


class ReconcileTermsTask(BaseModel):
    limit: int = Field(default=100, ge=1, le=1000)


def _require_task_auth(request: Request) -> None:
    if not verify_task_auth(request):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/attach-term", dependencies=[Depends(_require_task_auth)])
def attach_term_task(
    payload: AttachTermTask,
    terms: TermReservationCoordinator = Depends(get_term_coordinator),
) -> dict:
    """Attach a reserved term to one accepted request.

    Returns:
        The TermAttachment as a dict; outcome is attached, failed or skipped.
    """
    result = terms.attach_external_term(payload.reservation_request_id)
    return asdict(result)


@router.post("/reconcile-terms", dependencies=[Depends(_require_task_auth)])
def reconcile_terms_task(
    payload: ReconcileTermsTask,
    terms: TermReservationCoordinator = Depends(get_term_coordinator),
) -> dict:
    results = terms.reconcile(limit=payload.limit)
    return {
        "processed": len(results),
        "attached": sum(1 for r in results if r.outcome == "attached"),
        "failed": sum(1 for r in results if r.outcome == "failed"),
        "results": [asdict(r) for r in results],
    }
