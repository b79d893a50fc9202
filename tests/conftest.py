"""
Pytest configuration and fixtures for Pixel Board tests
"""
import pytest
from fastapi.testclient import TestClient

from fakes import FakeClock, small_settings
from pixelboard.main import create_app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    """TestClient with the lifespan running, so every connection shares one event loop."""
    app = create_app(small_settings())
    with TestClient(app) as c:
        yield c
