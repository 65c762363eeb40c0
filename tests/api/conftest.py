"""
HTTP client fixtures; the app wraps the parametrized ``catalog`` fixture.
"""

import pytest
from fastapi.testclient import TestClient

from travelogue.web.app import create_app


@pytest.fixture
def client(catalog):
    with TestClient(create_app(catalog)) as client:
        yield client
