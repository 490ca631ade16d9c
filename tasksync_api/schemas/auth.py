import datetime
import typing
import pydantic
import tasksync_api.schemas.responses


class DeviceInfo(tasksync_api.schemas.responses.CamelModel):
    platform: typing.Optional[str] = None
    version: typing.Optional[str] = None


class GoogleLoginRequest(tasksync_api.schemas.responses.CamelModel):
    id_token: str = pydantic.Field(min_length=1)
    device_info: typing.Optional[DeviceInfo] = None

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "idToken": "eyJhbGciOiJSUzI1NiIsImtpZCI6Ij...",
                "deviceInfo": {"platform": "ios", "version": "17.4"}
            }
        }
    )


class RefreshTokenRequest(tasksync_api.schemas.responses.CamelModel):
    refresh_token: typing.Optional[str] = None

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "refreshToken": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08"
            }
        }
    )


class PublicUser(tasksync_api.schemas.responses.CamelModel):
    id: int
    email: str
    name: typing.Optional[str] = None
    avatar: typing.Optional[str] = None


class UserProfile(PublicUser):
    last_login: typing.Optional[datetime.datetime] = None
    created_at: typing.Optional[datetime.datetime] = None


class CurrentUser(tasksync_api.schemas.responses.CamelModel):
    id: int
    email: str


class LoginData(tasksync_api.schemas.responses.CamelModel):
    user: PublicUser
    token: str
    refresh_token: str
    expires_in: int


class RefreshData(tasksync_api.schemas.responses.CamelModel):
    token: str
    refresh_token: str
    expires_in: int


class UserData(tasksync_api.schemas.responses.CamelModel):
    user: UserProfile


class VerifyData(tasksync_api.schemas.responses.CamelModel):
    valid: bool = True
    user: CurrentUser
