"""Shared test fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mb_common.database import get_db_session
from src.mb_gateway.auth.jwt_handler import ROLE_OPERATOR, create_access_token


async def _fake_db_session() -> AsyncGenerator[MagicMock, None]:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    yield db


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints without a database."""
    app.dependency_overrides[get_db_session] = _fake_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def operator_headers() -> dict[str, str]:
    token = create_access_token("op-1", role=ROLE_OPERATOR)
    return {"Authorization": f"Bearer {token}"}
