import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def fresh_pricing_config():
    from fares.services.config import get_pricing_store

    # settings overrides are not part of the configuration version
    cache.clear()
    get_pricing_store().invalidate()
    yield
    cache.clear()
    get_pricing_store().invalidate()
