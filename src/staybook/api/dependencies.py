"""Process-wide collaborators, built lazily and overridable in tests.

Routes depend on these getters through FastAPI's Depends so tests can swap
them via app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache

from staybook.clients.accommodation import AccommodationServiceClient
from staybook.clients.users import UserServiceClient
from staybook.infra.repositories.reservation_requests_repository import (
    PostgresReservationRepository,
)
from staybook.infra.settings import ServiceSettings, load_settings
from staybook.services.reservation_requests import ReservationRequestService
from staybook.services.term_reservations import TermReservationCoordinator


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    return load_settings()


@lru_cache(maxsize=1)
def _accommodation_client() -> AccommodationServiceClient:
    return AccommodationServiceClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def _repository() -> PostgresReservationRepository:
    return PostgresReservationRepository()


@lru_cache(maxsize=1)
def _user_client() -> UserServiceClient:
    return UserServiceClient.from_settings(get_settings())


def get_authorizer() -> UserServiceClient:
    """Authorizer capability: resolves bearer tokens to CurrentUser."""
    return _user_client()


def get_term_coordinator() -> TermReservationCoordinator:
    return TermReservationCoordinator(_repository(), _accommodation_client())


def get_reservation_service() -> ReservationRequestService:
    return ReservationRequestService(
        _repository(),
        _accommodation_client(),
        get_term_coordinator(),
    )
