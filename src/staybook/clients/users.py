"""Client for the user service's authorize endpoints.

The bearer token from the inbound request is forwarded untouched; the user
service answers with the caller's id and role.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import requests

from staybook.clients.round_robin import RoundRobin
from staybook.infra.settings import ServiceSettings
from staybook.observability.correlation import outbound_headers
from staybook.observability.logging import get_logger

logger = get_logger(__name__)

Role = Literal["HOST", "GUEST"]

_AUTHORIZE_PATHS: dict[str, str] = {
    "HOST": "/api/users/authorize/host",
    "GUEST": "/api/users/authorize/guest",
}


class UserServiceError(Exception):
    """User service could not be reached or answered with garbage."""


class NotAuthorizedError(Exception):
    """User service refused the token for the requested role."""


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity as resolved by the user service."""

    id: int
    role: str


class UserServiceClient:
    """Resolves bearer tokens into CurrentUser via the user service pool."""

    def __init__(
        self,
        base_urls: RoundRobin,
        *,
        timeout: float = 3.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_urls = base_urls
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "UserServiceClient":
        return cls(RoundRobin(settings.user_service_urls), timeout=settings.http_timeout_seconds)

    def resolve(self, authorization: str, role: Role) -> CurrentUser:
        """Authorize the caller for a role.

        Args:
            authorization: Raw Authorization header value ("Bearer ...").
            role: Role the operation requires.

        Raises:
            NotAuthorizedError: Peer answered 401/403.
            UserServiceError: Transport failure or undecodable body.
        """
        url = f"{self._base_urls.next()}{_AUTHORIZE_PATHS[role]}"
        headers = {"Authorization": authorization, **outbound_headers()}
        try:
            response = self._session.post(url, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(
                "user service authorize failed",
                extra={"extra_fields": {"role": role, "error": type(e).__name__}},
            )
            raise UserServiceError("User service unavailable") from e

        if response.status_code in (401, 403):
            raise NotAuthorizedError(f"user is not a {role.lower()}")

        try:
            response.raise_for_status()
            payload = response.json()
            return CurrentUser(id=int(payload["id"]), role=str(payload.get("role", "")))
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            raise UserServiceError("User service returned an invalid response") from e
