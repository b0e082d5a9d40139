"""Shared pytest fixtures for reservation service tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_dependency_caches():
    """Drop cached settings and clients so env patches in one test don't leak."""
    from staybook.api import dependencies

    cached = (
        dependencies.get_settings,
        dependencies._accommodation_client,
        dependencies._repository,
        dependencies._user_client,
    )
    for fn in cached:
        fn.cache_clear()
    yield
    for fn in cached:
        fn.cache_clear()
