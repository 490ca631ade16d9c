import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-tasksync-tests")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("ENV", "test")

import datetime
import pytest
import fastapi.testclient
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession
import tasksync_api.database
import tasksync_api.main
import tasksync_api.middleware.auth
import tasksync_api.schemas.auth


@pytest.fixture
def mock_session():
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def mock_user():
    user = MagicMock()
    user.user_id = 1
    user.google_id = "google-sub-123"
    user.email = "test@example.com"
    user.name = "Test User"
    user.avatar_url = "https://example.com/avatar.png"
    user.last_login = datetime.datetime(2026, 1, 1, 12, 0, 0)
    user.created_at = datetime.datetime(2026, 1, 1, 12, 0, 0)
    user.updated_at = datetime.datetime(2026, 1, 1, 12, 0, 0)
    return user


@pytest.fixture
def mock_refresh_token(mock_user):
    token = MagicMock()
    token.token_id = 1
    token.user_id = 1
    token.token_hash = "abc123def456" * 5 + "abcd"
    token.is_revoked = False
    token.expires_at = datetime.datetime.utcnow() + datetime.timedelta(days=7)
    token.revoked_at = None
    token.replaced_by_token_id = None
    token.user = mock_user
    return token


@pytest.fixture
def mock_task():
    task = MagicMock()
    task.task_id = 10
    task.user_id = 1
    task.title = "Write report"
    task.description = "Quarterly numbers"
    task.completed = False
    task.priority = "high"
    task.due_date = datetime.datetime(2026, 11, 1, 9, 0, 0)
    task.created_at = datetime.datetime(2026, 10, 1, 12, 0, 0)
    task.updated_at = datetime.datetime(2026, 10, 1, 12, 0, 0)
    return task


def make_execute_result(value, rowcount: int = 1):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    values = value if isinstance(value, list) else ([] if value is None else [value])
    result.scalars.return_value.first.return_value = values[0] if values else None
    result.scalars.return_value.all.return_value = values
    result.rowcount = rowcount
    return result


@pytest.fixture
def current_user():
    return tasksync_api.schemas.auth.CurrentUser(id=1, email="test@example.com")


@pytest.fixture
def client(mock_session):
    app = tasksync_api.main.app
    app.dependency_overrides[tasksync_api.database.get_session] = lambda: mock_session
    yield fastapi.testclient.TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def authed_client(client, current_user):
    app = tasksync_api.main.app
    app.dependency_overrides[tasksync_api.middleware.auth.require_user] = lambda: current_user
    return client
