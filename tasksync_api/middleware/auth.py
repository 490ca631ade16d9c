import typing
import logging
import jwt
import fastapi
import sqlalchemy.ext.asyncio
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import tasksync_api.database
import tasksync_api.errors
import tasksync_api.schemas.auth
import tasksync_api.services.token_service
import tasksync_api.services.user_service

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def _decode_access_token(token: str) -> typing.Dict[str, typing.Any]:
    try:
        return tasksync_api.services.token_service.decode_access_token(token)
    except jwt.ExpiredSignatureError:
        logger.debug("Access token expired")
        raise tasksync_api.errors.ExpiredTokenError("token_expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid access token: {e}")
        raise tasksync_api.errors.InvalidTokenError("invalid_token")


async def authenticate(
    credentials: typing.Optional[HTTPAuthorizationCredentials],
    session: sqlalchemy.ext.asyncio.AsyncSession
) -> tasksync_api.schemas.auth.CurrentUser:
    if not credentials or not credentials.credentials:
        raise tasksync_api.errors.NoTokenError("no_token")

    payload = _decode_access_token(credentials.credentials)

    if payload.get("type") != tasksync_api.services.token_service.ACCESS_TOKEN_TYPE:
        raise tasksync_api.errors.InvalidTokenTypeError("invalid_token_type")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise tasksync_api.errors.InvalidTokenError("invalid_subject")

    user = await tasksync_api.services.user_service.get_user_by_id(session, user_id)

    return tasksync_api.schemas.auth.CurrentUser(id=user.user_id, email=user.email)


async def require_user(
    request: fastapi.Request,
    credentials: typing.Optional[HTTPAuthorizationCredentials] = fastapi.Depends(_bearer_scheme),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
) -> tasksync_api.schemas.auth.CurrentUser:
    current_user = await authenticate(credentials, session)
    request.state.current_user = current_user
    return current_user


async def get_current_user_optional(
    request: fastapi.Request,
    credentials: typing.Optional[HTTPAuthorizationCredentials] = fastapi.Depends(_bearer_scheme),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
) -> typing.Optional[tasksync_api.schemas.auth.CurrentUser]:
    if not credentials:
        return None

    try:
        current_user = await authenticate(credentials, session)
    except tasksync_api.errors.ApiError as e:
        logger.debug(f"Optional authentication failed: {e.code}")
        return None

    request.state.current_user = current_user
    return current_user
