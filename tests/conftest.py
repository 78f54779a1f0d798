import pytest
from fastapi.testclient import TestClient

from signing_service.config import Settings
from signing_service.main import create_app
from signing_service.registry import InMemoryDeviceRegistry
from signing_service.service import SigningService


@pytest.fixture
def registry():
    return InMemoryDeviceRegistry()


@pytest.fixture
def service(registry):
    return SigningService(registry)


@pytest.fixture
def client(service):
    app = create_app(service=service, settings=Settings())
    with TestClient(app) as c:
        yield c
