import pytest
from fastapi.testclient import TestClient

from devops_stack.api.app import create_app
from devops_stack.config.settings import Settings


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        enable_periodic_recompute=False,
        dashboard_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
