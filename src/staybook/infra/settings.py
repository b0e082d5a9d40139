"""Service configuration loaded from the environment.

Peer-service settings with local-dev defaults. Database and task-secret
variables are read at call time by infra.db and api.task_auth.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ACCOMMODATION_SERVICE_PATH = "http://localhost:8082"
DEFAULT_USER_SERVICE_PATH = "http://localhost:8081"


@dataclass(frozen=True)
class ServiceSettings:
    """Resolved settings for one process.

    Attributes:
        accommodation_service_urls: Base URLs of the accommodation service pool.
        user_service_urls: Base URLs of the user service pool.
        http_timeout_seconds: Timeout applied to every outbound call.
    """

    accommodation_service_urls: tuple[str, ...]
    user_service_urls: tuple[str, ...]
    http_timeout_seconds: float = 3.0


def _split_urls(raw: str, default: str) -> tuple[str, ...]:
    """Split a comma-separated URL list, dropping blanks and trailing slashes."""
    urls = tuple(u.strip().rstrip("/") for u in raw.split(",") if u.strip())
    return urls or (default,)


def load_settings() -> ServiceSettings:
    """Build ServiceSettings from environment variables."""
    return ServiceSettings(
        accommodation_service_urls=_split_urls(
            os.environ.get("ACCOMMODATION_SERVICE_PATH", ""),
            DEFAULT_ACCOMMODATION_SERVICE_PATH,
        ),
        user_service_urls=_split_urls(
            os.environ.get("USER_SERVICE_PATH", ""),
            DEFAULT_USER_SERVICE_PATH,
        ),
        http_timeout_seconds=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "3")),
    )
