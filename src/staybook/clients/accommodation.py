"""Client for the accommodation service.

Provides:
- fetch_accommodation(): availability calendar, guest bounds and policy
- create_reserved_term(): block a date range on the accommodation side
- delete_reserved_term(): release a previously blocked range

Single attempt per call with an explicit timeout; no retries, no cache.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import requests

from staybook.clients.round_robin import RoundRobin
from staybook.domain.errors import AccommodationNotFoundError, AccommodationUnavailableError
from staybook.domain.reservation_requests import (
    AcceptancePolicy,
    AccommodationInfo,
    AvailableTerm,
    ReservationRequest,
)
from staybook.infra.settings import ServiceSettings
from staybook.observability.correlation import outbound_headers
from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context

logger = get_logger(__name__)

ACCOMMODATION_PATH = "/api/accomodation"


class ReservedTermError(Exception):
    """Reserved-term call to the accommodation service failed."""


def _parse_date(raw: Any) -> date:
    """Parse an RFC 3339 timestamp or plain ISO date into a calendar date."""
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"invalid date value: {raw!r}")
    if len(raw) == 10:
        return date.fromisoformat(raw)
    return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()


def _as_wire_datetime(day: date) -> str:
    return f"{day.isoformat()}T00:00:00Z"


def parse_accommodation(payload: dict[str, Any]) -> AccommodationInfo:
    """Decode the accommodation service's JSON into AccommodationInfo.

    Raises:
        KeyError, ValueError, TypeError: On malformed payloads.
    """
    if not isinstance(payload, dict):
        raise TypeError(f"accommodation payload must be an object, got {type(payload).__name__}")
    raw_terms = payload.get("availableTerms") or []
    if not isinstance(raw_terms, list) or not all(isinstance(t, dict) for t in raw_terms):
        raise TypeError("availableTerms must be a list of objects")
    terms = tuple(
        AvailableTerm(
            start_date=_parse_date(term.get("startDate") or term.get("StartDate")),
            end_date=_parse_date(term.get("endDate") or term.get("EndDate")),
        )
        for term in raw_terms
    )
    return AccommodationInfo(
        id=int(payload["id"]),
        owner_id=int(payload["userID"]),
        name=payload.get("name") or "",
        # sic: the peer spells it "minimimGuests"
        min_guests=int(payload.get("minimimGuests", payload.get("minimumGuests", 0)) or 0),
        max_guests=int(payload.get("maximumGuests", 0) or 0),
        accept_reservation_type=AcceptancePolicy.parse(payload.get("acceptReservationType")),
        available_terms=terms,
    )


class AccommodationServiceClient:
    """HTTP client for the accommodation service pool."""

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
    def from_settings(cls, settings: ServiceSettings) -> "AccommodationServiceClient":
        return cls(
            RoundRobin(settings.accommodation_service_urls),
            timeout=settings.http_timeout_seconds,
        )

    def _url(self, suffix: str) -> str:
        return f"{self._base_urls.next()}{ACCOMMODATION_PATH}{suffix}"

    def fetch_accommodation(self, accommodation_id: int) -> AccommodationInfo:
        """Fetch a fresh snapshot of the accommodation.

        Raises:
            AccommodationNotFoundError: Peer answered 404.
            AccommodationUnavailableError: Transport failure, timeout, non-2xx
                answer or undecodable body.
        """
        url = self._url(f"/{accommodation_id}")
        try:
            response = self._session.get(url, headers=outbound_headers(), timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(
                "accommodation fetch failed",
                extra={"extra_fields": safe_log_context(accommodation_id=accommodation_id, error=e)},
            )
            raise AccommodationUnavailableError("Accommodation service unavailable") from e

        if response.status_code == 404:
            raise AccommodationNotFoundError(f"Accommodation {accommodation_id} does not exist")

        try:
            response.raise_for_status()
            return parse_accommodation(response.json())
        except (requests.RequestException, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(
                "accommodation response rejected",
                extra={
                    "extra_fields": safe_log_context(
                        accommodation_id=accommodation_id,
                        status_code=response.status_code,
                        error=e,
                    )
                },
            )
            raise AccommodationUnavailableError("Accommodation service returned an invalid response") from e

    def create_reserved_term(self, request: ReservationRequest) -> int:
        """Register the request's range as a reserved term; return the term id.

        Raises:
            ReservedTermError: On transport failure, non-2xx or missing id.
        """
        body = {
            "startDate": _as_wire_datetime(request.start_date),
            "endDate": _as_wire_datetime(request.end_date),
            # sic: the peer decodes "accomodationId"
            "accomodationId": request.accommodation_id,
        }
        try:
            response = self._session.post(
                self._url("/reservedTerm"),
                json=body,
                headers=outbound_headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            term_id = response.json()["id"]
            return int(term_id)
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            raise ReservedTermError(f"reserved term create failed: {e}") from e

    def delete_reserved_term(self, term_id: int) -> None:
        """Release a reserved term.

        Raises:
            ReservedTermError: On transport failure or non-2xx answer.
        """
        try:
            response = self._session.delete(
                self._url(f"/reservedTerm/{term_id}"),
                headers=outbound_headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ReservedTermError(f"reserved term delete failed: {e}") from e
