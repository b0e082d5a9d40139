"""Authentication for worker task routes.

Worker routes are called by a supervising process (scheduler, cron job),
never by end users. They require the X-Internal-Task-Secret header to match
INTERNAL_TASK_SECRET; an unset secret rejects every call.
"""

from __future__ import annotations

import hmac
import os

from fastapi import Request

from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context

logger = get_logger(__name__)

TASK_SECRET_HEADER = "X-Internal-Task-Secret"


def verify_task_auth(request: Request) -> bool:
    """Verify the internal task secret header.

    Args:
        request: FastAPI request object.

    Returns:
        True if authenticated, False otherwise.
    """
    expected = os.environ.get("INTERNAL_TASK_SECRET", "")
    if not expected:
        logger.error(
            "INTERNAL_TASK_SECRET not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_secret_env")},
        )
        return False

    provided = request.headers.get(TASK_SECRET_HEADER, "")
    if not provided or not hmac.compare_digest(provided, expected):
        logger.warning(
            "task auth failed",
            extra={"extra_fields": safe_log_context(has_header=bool(provided))},
        )
        return False
    return True
