"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from staybook.api.routes import reservation_requests

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(reservation_requests.router)
