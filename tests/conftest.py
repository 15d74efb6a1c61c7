# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import InMemoryProductStore
from app.main import create_app


@pytest.fixture
def store():
    return InMemoryProductStore()


@pytest.fixture
def app(store):
    return create_app(Settings(store_url="memory://"), store=store)


@pytest.fixture
def client(app):
    return TestClient(app)
