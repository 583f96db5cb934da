import pytest


@pytest.fixture(autouse=True)
def _fresh_coordinator():
    """Each test gets its own process-wide coordinator and index."""
    from apps.bookings.services import get_coordinator

    get_coordinator.cache_clear()
    yield
    get_coordinator.cache_clear()
