import pytest
from fastapi.testclient import TestClient

from messenger.api.websocket import manager
from messenger.database.core.storage import seed_demo_data, storage
from messenger.main import app
from tests.helpers import TENANT, auth_headers


@pytest.fixture(autouse=True)
def demo_storage():
    storage.clear()
    manager.connections.clear()
    seed_demo_data(storage, TENANT)
    yield storage
    storage.clear()
    manager.connections.clear()


@pytest.fixture
def client(demo_storage):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def dan_headers():
    return auth_headers("U.001")


@pytest.fixture
def sarah_headers():
    return auth_headers("U.003", username="sarah", display_name="Sarah (Designer)")
