import datetime
import pytest
import jwt
import fastapi
from fastapi.security import HTTPAuthorizationCredentials
import tasksync_api.config
import tasksync_api.errors
import tasksync_api.middleware.auth
import tasksync_api.services.token_service
import tasksync_api.services.user_service


def make_token(user_id="1", token_type: str = "access", expires_delta=datetime.timedelta(minutes=15)) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": user_id,
        "email": "test@example.com",
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta
    }
    return jwt.encode(
        payload,
        tasksync_api.config.settings.jwt_secret_key,
        algorithm=tasksync_api.config.settings.jwt_algorithm
    )


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def user_lookup(mocker, mock_user):
    return mocker.patch.object(
        tasksync_api.services.user_service,
        "get_user_by_id",
        mocker.AsyncMock(return_value=mock_user)
    )


@pytest.fixture
def request_stub(mocker):
    request = mocker.MagicMock(spec=fastapi.Request)
    request.state = mocker.MagicMock()
    return request


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_authenticate_valid_token(self, mock_session, user_lookup):
        token = tasksync_api.services.token_service.create_access_token(1, "test@example.com")

        current_user = await tasksync_api.middleware.auth.authenticate(bearer(token), mock_session)

        assert current_user.id == 1
        assert current_user.email == "test@example.com"
        user_lookup.assert_awaited_once_with(mock_session, 1)

    @pytest.mark.asyncio
    async def test_authenticate_missing_credentials(self, mock_session):
        with pytest.raises(tasksync_api.errors.NoTokenError):
            await tasksync_api.middleware.auth.authenticate(None, mock_session)

    @pytest.mark.asyncio
    async def test_authenticate_expired_token(self, mock_session, user_lookup):
        token = make_token(expires_delta=datetime.timedelta(seconds=-1))
        with pytest.raises(tasksync_api.errors.ExpiredTokenError):
            await tasksync_api.middleware.auth.authenticate(bearer(token), mock_session)
        user_lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_authenticate_garbage_token(self, mock_session):
        with pytest.raises(tasksync_api.errors.InvalidTokenError):
            await tasksync_api.middleware.auth.authenticate(bearer("garbage"), mock_session)

    @pytest.mark.asyncio
    async def test_authenticate_wrong_token_type(self, mock_session, user_lookup):
        with pytest.raises(tasksync_api.errors.InvalidTokenTypeError):
            await tasksync_api.middleware.auth.authenticate(bearer(make_token(token_type="refresh")), mock_session)

    @pytest.mark.asyncio
    async def test_authenticate_non_numeric_subject(self, mock_session, user_lookup):
        with pytest.raises(tasksync_api.errors.InvalidTokenError):
            await tasksync_api.middleware.auth.authenticate(bearer(make_token(user_id="abc")), mock_session)

    @pytest.mark.asyncio
    async def test_authenticate_deleted_user(self, mocker, mock_session):
        mocker.patch.object(
            tasksync_api.services.user_service,
            "get_user_by_id",
            mocker.AsyncMock(side_effect=tasksync_api.errors.UserNotFoundError("user_not_found"))
        )
        with pytest.raises(tasksync_api.errors.UserNotFoundError):
            await tasksync_api.middleware.auth.authenticate(bearer(make_token()), mock_session)


class TestRequireUser:
    @pytest.mark.asyncio
    async def test_require_user_attaches_identity(self, mock_session, user_lookup, request_stub):
        current_user = await tasksync_api.middleware.auth.require_user(
            request_stub, bearer(make_token()), mock_session
        )
        assert request_stub.state.current_user == current_user


class TestGetCurrentUserOptional:
    @pytest.mark.asyncio
    async def test_optional_valid(self, mock_session, user_lookup, request_stub):
        current_user = await tasksync_api.middleware.auth.get_current_user_optional(
            request_stub, bearer(make_token()), mock_session
        )
        assert current_user.id == 1

    @pytest.mark.asyncio
    async def test_optional_missing(self, mock_session, request_stub):
        assert await tasksync_api.middleware.auth.get_current_user_optional(
            request_stub, None, mock_session
        ) is None

    @pytest.mark.asyncio
    async def test_optional_expired(self, mock_session, user_lookup, request_stub):
        token = make_token(expires_delta=datetime.timedelta(seconds=-1))
        assert await tasksync_api.middleware.auth.get_current_user_optional(
            request_stub, bearer(token), mock_session
        ) is None

    @pytest.mark.asyncio
    async def test_optional_wrong_type(self, mock_session, user_lookup, request_stub):
        assert await tasksync_api.middleware.auth.get_current_user_optional(
            request_stub, bearer(make_token(token_type="refresh")), mock_session
        ) is None

    @pytest.mark.asyncio
    async def test_optional_deleted_user(self, mocker, mock_session, request_stub):
        mocker.patch.object(
            tasksync_api.services.user_service,
            "get_user_by_id",
            mocker.AsyncMock(side_effect=tasksync_api.errors.UserNotFoundError("user_not_found"))
        )
        assert await tasksync_api.middleware.auth.get_current_user_optional(
            request_stub, bearer(make_token()), mock_session
        ) is None
