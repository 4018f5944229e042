import pytest
from rest_framework.test import APIClient


@pytest.fixture
def api_client():
    """Cliente DRF sin autenticación (la API es pública detrás del gateway)."""
    return APIClient()
