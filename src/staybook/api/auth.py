"""Caller authentication through the user service.

Provides:
- Authorizer: the capability routes depend on (resolve token + role)
- require_guest / require_host: FastAPI dependencies returning CurrentUser

The bearer token is never inspected here; the user service is the only
judge of identity and role.
"""

from __future__ import annotations

from typing import Callable, Protocol

from fastapi import Depends, HTTPException, Request

from staybook.api.dependencies import get_authorizer
from staybook.clients.users import CurrentUser, NotAuthorizedError, Role, UserServiceError
from staybook.observability.logging import get_logger

logger = get_logger(__name__)


class Authorizer(Protocol):
    def resolve(self, authorization: str, role: Role) -> CurrentUser: ...


def _extract_bearer_token(request: Request) -> str:
    """Return the raw Authorization header if it carries a Bearer token.

    Raises:
        HTTPException: 401 if header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return auth_header


def require_role(role: Role) -> Callable[..., CurrentUser]:
    """Create a dependency that resolves the caller and demands `role`.

    Usage:
        @router.post("")
        def endpoint(user: CurrentUser = Depends(require_role("GUEST"))):
            ...
    """
    label = role.lower()

    def dependency(
        request: Request,
        authorizer: Authorizer = Depends(get_authorizer),
    ) -> CurrentUser:
        authorization = _extract_bearer_token(request)
        try:
            user = authorizer.resolve(authorization, role)
        except NotAuthorizedError:
            raise HTTPException(status_code=401, detail=f"user is not a {label}")
        except UserServiceError:
            raise HTTPException(status_code=503, detail="Auth temporarily unavailable")

        if user.role != role:
            logger.warning(
                "caller role mismatch",
                extra={"extra_fields": {"required_role": role, "resolved_role": user.role}},
            )
            raise HTTPException(status_code=401, detail=f"user is not a {label}")
        return user

    return dependency


require_guest = require_role("GUEST")
require_host = require_role("HOST")
