"""
Pytest configuration and fixtures for apicontract tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from apicontract.api import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fastapi.testclient import TestClient  # noqa: E402

from apicontract.app import AppContext, make_app  # noqa: E402
from apicontract.config import LoggingConfig, Settings  # noqa: E402
from apicontract.observability import reset_metrics  # noqa: E402
from apicontract.transaction import (  # noqa: E402
    InMemoryStore,
    NoBackoff,
    RetryingUnitOfWork,
    RetryPolicy,
)


@pytest.fixture(autouse=True)
def clean_metrics():
    """Start every test with zeroed global metrics."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def settings():
    """Non-production settings, as used by a test harness."""
    return Settings(
        service_name="test",
        environment="test",
        logging=LoggingConfig(unittesting=True),
    )


@pytest.fixture
def prod_settings():
    """Production settings."""
    return Settings(service_name="test", environment="prod")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def unit_of_work(store):
    """Unit of work retrying up to 4 attempts without sleeping."""
    return RetryingUnitOfWork(store, RetryPolicy(max_attempts=4, backoff=NoBackoff()))


@pytest.fixture
def app_context(settings, unit_of_work):
    return AppContext(settings=settings, unit_of_work=unit_of_work)


@pytest.fixture
def make_client(settings, unit_of_work):
    """
    Factory building a TestClient for a set of API components.

    Usage:
        client = make_client([EchoAPI])
        client = make_client([EchoAPI], settings=prod_settings)
    """
    clients = []

    def factory(components, **overrides):
        overrides.setdefault("settings", settings)
        overrides.setdefault("unit_of_work", unit_of_work)
        app = make_app("test", components, **overrides)
        client = TestClient(app, follow_redirects=False)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
