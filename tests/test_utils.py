import datetime
import pytest
import tasksync_api.errors
import tasksync_api.schemas.auth
import tasksync_api.utils.responses
import tasksync_api.utils.time


class TestTime:
    def test_utcnow_is_naive(self):
        assert tasksync_api.utils.time.utcnow().tzinfo is None

    def test_to_naive_utc_converts_offset(self):
        value = datetime.datetime(2026, 1, 1, 12, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=2)))
        assert tasksync_api.utils.time.to_naive_utc(value) == datetime.datetime(2026, 1, 1, 10, 0)

    def test_isoformat_utc_appends_z(self):
        assert tasksync_api.utils.time.isoformat_utc(datetime.datetime(2026, 1, 1, 12, 0)) == "2026-01-01T12:00:00Z"


class TestResponses:
    def test_api_error_response_body(self):
        response = tasksync_api.utils.responses.api_error_response(
            tasksync_api.errors.ExpiredTokenError("token_expired")
        )
        assert response.status_code == 401
        assert response.body == b'{"error":"Token expired","code":"TOKEN_EXPIRED","details":{}}'
        assert response.headers["www-authenticate"] == "Bearer"

    def test_api_error_response_status_override(self):
        response = tasksync_api.utils.responses.api_error_response(
            tasksync_api.errors.UserNotFoundError("user_not_found"),
            status_code=404
        )
        assert response.status_code == 404
        assert "www-authenticate" not in response.headers

    def test_error_message_key(self):
        error = tasksync_api.errors.RevokedTokenError("token_revoked")
        assert str(error) == "token_revoked"
        assert error.code == "TOKEN_REVOKED"
        assert isinstance(error, tasksync_api.errors.ApiError)


class TestWireFormat:
    def test_login_data_is_camel_case(self):
        data = tasksync_api.schemas.auth.LoginData(
            user=tasksync_api.schemas.auth.PublicUser(id=1, email="a@example.com"),
            token="t",
            refresh_token="r",
            expires_in=900
        )
        assert data.to_wire() == {
            "user": {"id": 1, "email": "a@example.com", "name": None, "avatar": None},
            "token": "t",
            "refreshToken": "r",
            "expiresIn": 900
        }

    def test_request_accepts_camel_case(self):
        request = tasksync_api.schemas.auth.GoogleLoginRequest.model_validate({"idToken": "abc"})
        assert request.id_token == "abc"
        assert request.device_info is None


class TestUnhandledErrorHandler:
    @pytest.mark.asyncio
    async def test_unhandled_error_maps_to_internal_error(self, mocker):
        request = mocker.MagicMock()
        request.method = "GET"
        request.url.path = "/tasks"

        response = await tasksync_api.utils.responses.unhandled_error_handler(request, KeyError("boom"))

        assert response.status_code == 500
        assert response.body == b'{"error":"An unexpected error occurred","code":"INTERNAL_ERROR","details":{}}'
        assert "www-authenticate" not in response.headers
