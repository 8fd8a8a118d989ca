import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle history and the cached roster live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin_password(settings):
    settings.PORTAL_ADMIN_PASSWORD = 'test-secret'
    return 'test-secret'
