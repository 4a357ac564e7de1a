"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PG + Redis up, `alembic upgrade head`, then RUN_INTEGRATION=1.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.main import app
from src.sc_gateway.auth.jwt_handler import create_access_token


def pytest_collection_modifyitems(config, items):
    if os.environ.get("RUN_INTEGRATION"):
        return
    skip = pytest.mark.skip(reason="needs PG + Redis; set RUN_INTEGRATION=1")
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac



@pytest.fixture(scope="session")
def payment_headers() -> dict[str, str]:
    """Bearer headers of the payment service that credits deposits."""
    service_id = "it_payment_gateway"
    previous = settings.DEPOSIT_SERVICE_IDS
    settings.DEPOSIT_SERVICE_IDS = [service_id]
    yield {"Authorization": f"Bearer {create_access_token(service_id)}"}
    settings.DEPOSIT_SERVICE_IDS = previous
