"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session. Requires a migrated PostgreSQL at DATABASE_URL.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mb_gateway.auth.jwt_handler import ROLE_OPERATOR, create_access_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client backed by the real database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="session")
def operator_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token('it-operator', role=ROLE_OPERATOR)}"}


@pytest.fixture(scope="session")
def bettor_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token('it-bettor')}"}
