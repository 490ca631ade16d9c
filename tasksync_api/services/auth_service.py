import logging
import typing
import sqlalchemy.ext.asyncio
import tasksync_api.errors
import tasksync_api.models.user
import tasksync_api.services.google_verifier
import tasksync_api.services.token_service
import tasksync_api.services.user_service

logger = logging.getLogger(__name__)


async def login_with_google(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    id_token: str,
    device_info: typing.Optional[typing.Dict[str, typing.Any]] = None
) -> typing.Tuple[tasksync_api.models.user.User, str, str]:
    try:
        identity = await tasksync_api.services.google_verifier.verify_google_token_async(id_token)
        user = await tasksync_api.services.user_service.find_or_create_user(session, identity)
        access_token = tasksync_api.services.token_service.create_access_token(user.user_id, user.email)
        _, raw_refresh_token = await tasksync_api.services.token_service.issue_refresh_token(
            session, user.user_id
        )
    except tasksync_api.errors.ApiError as e:
        logger.error(f"Google login failed: {e.code} - {str(e)}")
        raise tasksync_api.errors.AuthenticationFailedError(
            "authentication_failed",
            details={"reason": str(e)}
        )
    except Exception as e:
        logger.error(f"Google login failed: {str(e)}")
        raise tasksync_api.errors.AuthenticationFailedError("authentication_failed")

    if device_info:
        logger.info(f"User {user.user_id} logged in from device {device_info}")

    return user, access_token, raw_refresh_token


async def refresh_session(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    refresh_token_raw: str
) -> typing.Tuple[str, str, tasksync_api.models.user.User]:
    try:
        token = await tasksync_api.services.token_service.verify_refresh_token(session, refresh_token_raw)
        user = token.user
        _, new_raw_refresh_token = await tasksync_api.services.token_service.rotate_refresh_token(
            session, token
        )
    except tasksync_api.errors.ApiError as e:
        logger.info(f"Refresh rejected: {e.code} - {str(e)}")
        raise tasksync_api.errors.RefreshFailedError(
            "refresh_failed",
            details={"reason": e.code}
        )

    new_access_token = tasksync_api.services.token_service.create_access_token(user.user_id, user.email)
    return new_access_token, new_raw_refresh_token, user


async def logout(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    refresh_token_raw: typing.Optional[str]
) -> bool:
    if not refresh_token_raw:
        return False

    try:
        return await tasksync_api.services.token_service.revoke_refresh_token(session, refresh_token_raw)
    except Exception as e:
        logger.error(f"Error revoking refresh token on logout: {str(e)}")
        return False
