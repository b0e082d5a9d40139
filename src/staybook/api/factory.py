"""FastAPI application factory with role-based route mounting."""

import os
from typing import Literal

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from staybook.domain.errors import ReservationRequestError
from staybook.observability.correlation import (
    CORRELATION_ID_HEADER,
    accept_inbound,
    correlation_scope,
)
from staybook.observability.logging import get_logger

from .routers import public, worker

AppRole = Literal["public", "worker"]

logger = get_logger(__name__)


def create_app(role: AppRole | None = None) -> FastAPI:
    """Create FastAPI app with routes based on APP_ROLE.

    Args:
        role: Explicit role override. If None, reads from APP_ROLE env var.
              Defaults to "public" if env var is not set.

    Returns:
        Configured FastAPI application.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]

    app = FastAPI(
        title="Staybook Reservation Service",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        inbound = request.headers.get(CORRELATION_ID_HEADER)
        with correlation_scope(accept_inbound(inbound)) as cid:
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    @app.exception_handler(ReservationRequestError)
    async def reservation_request_error_handler(
        request: Request, exc: ReservationRequestError
    ) -> JSONResponse:
        logger.info(
            "reservation request rejected",
            extra={
                "extra_fields": {
                    "error": type(exc).__name__,
                    "path": request.url.path,
                    "status_code": exc.status_code,
                }
            },
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    app.include_router(public.router)

    # Worker routes only for worker role
    if role == "worker":
        app.include_router(worker.router)

    return app
