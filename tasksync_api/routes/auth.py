import fastapi
import logging
import typing
import sqlalchemy.ext.asyncio
import tasksync_api.config
import tasksync_api.database
import tasksync_api.errors
import tasksync_api.middleware.auth
import tasksync_api.middleware.rate_limit
import tasksync_api.models.user
import tasksync_api.schemas.auth
import tasksync_api.schemas.responses
import tasksync_api.services.auth_service
import tasksync_api.services.user_service
import tasksync_api.utils.responses

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/auth", tags=["Auth"])

limiter = tasksync_api.middleware.rate_limit.limiter
settings = tasksync_api.config.settings


def _public_user(user: tasksync_api.models.user.User) -> tasksync_api.schemas.auth.PublicUser:
    return tasksync_api.schemas.auth.PublicUser(
        id=user.user_id,
        email=user.email,
        name=user.name,
        avatar=user.avatar_url
    )


def _user_profile(user: tasksync_api.models.user.User) -> tasksync_api.schemas.auth.UserProfile:
    return tasksync_api.schemas.auth.UserProfile(
        id=user.user_id,
        email=user.email,
        name=user.name,
        avatar=user.avatar_url,
        last_login=user.last_login,
        created_at=user.created_at
    )


def set_refresh_cookie(response: fastapi.Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_cookie_max_age,
        path="/",
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict"
    )


def clear_refresh_cookie(response: fastapi.Response) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/",
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict"
    )


def resolve_refresh_token(
    body: typing.Optional[tasksync_api.schemas.auth.RefreshTokenRequest],
    request: fastapi.Request
) -> typing.Optional[str]:
    if body and body.refresh_token:
        return body.refresh_token
    return request.cookies.get(settings.refresh_cookie_name) or None


@router.post(
    "/google",
    response_model=tasksync_api.schemas.auth.LoginData,
    summary="Sign in with Google",
    description="""
    Exchange a Google ID token for an access token (15-minute expiry) and a
    refresh token (7-day expiry).

    The refresh token is returned in the body for mobile clients and set as an
    HTTP-only `refreshToken` cookie for web clients.
    """,
    responses={
        401: {
            "description": "Google token rejected",
            "model": tasksync_api.schemas.responses.ErrorResponse
        }
    }
)
@limiter.limit(tasksync_api.middleware.rate_limit.get_auth_limit())
async def google_login(
    request: fastapi.Request,
    body: tasksync_api.schemas.auth.GoogleLoginRequest,
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    device_info = body.device_info.model_dump(exclude_none=True) if body.device_info else None
    try:
        user, access_token, refresh_token = await tasksync_api.services.auth_service.login_with_google(
            session,
            body.id_token,
            device_info
        )
    except tasksync_api.errors.AuthenticationFailedError as e:
        return tasksync_api.utils.responses.api_error_response(e)

    data = tasksync_api.schemas.auth.LoginData(
        user=_public_user(user),
        token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expires_in
    )
    response = tasksync_api.utils.responses.success_response(data.to_wire())
    set_refresh_cookie(response, refresh_token)
    return response


@router.post(
    "/refresh",
    response_model=tasksync_api.schemas.auth.RefreshData,
    summary="Refresh access token",
    description="""
    Exchange a refresh token for a new access token and a rotated refresh token.

    The refresh token is read from the body first, then from the `refreshToken`
    cookie. Each refresh token is single-use: the presented token is revoked and
    linked to its replacement.
    """,
    responses={
        401: {
            "description": "Refresh token missing, expired, revoked, or invalid",
            "model": tasksync_api.schemas.responses.ErrorResponse
        }
    }
)
@limiter.limit(tasksync_api.middleware.rate_limit.get_default_limit())
async def refresh_token(
    request: fastapi.Request,
    body: typing.Optional[tasksync_api.schemas.auth.RefreshTokenRequest] = None,
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    raw_token = resolve_refresh_token(body, request)
    if not raw_token:
        return tasksync_api.utils.responses.api_error_response(
            tasksync_api.errors.NoRefreshTokenError("no_refresh_token")
        )

    try:
        access_token, new_refresh_token, _ = await tasksync_api.services.auth_service.refresh_session(
            session,
            raw_token
        )
    except tasksync_api.errors.RefreshFailedError as e:
        return tasksync_api.utils.responses.api_error_response(e)

    data = tasksync_api.schemas.auth.RefreshData(
        token=access_token,
        refresh_token=new_refresh_token,
        expires_in=settings.access_token_expires_in
    )
    response = tasksync_api.utils.responses.success_response(data.to_wire())
    set_refresh_cookie(response, new_refresh_token)
    return response


@router.post(
    "/logout",
    response_model=tasksync_api.schemas.responses.MessageResponse,
    summary="Log out",
    description="""
    Revoke the presented refresh token (body or cookie) and clear the cookie.

    Always succeeds, including when no token is presented or the token is
    already revoked.
    """
)
@limiter.limit(tasksync_api.middleware.rate_limit.get_default_limit())
async def logout(
    request: fastapi.Request,
    body: typing.Optional[tasksync_api.schemas.auth.RefreshTokenRequest] = None,
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    await tasksync_api.services.auth_service.logout(session, resolve_refresh_token(body, request))

    response = tasksync_api.utils.responses.success_response(
        {"message": "Logged out successfully"}
    )
    clear_refresh_cookie(response)
    return response


@router.get(
    "/me",
    response_model=tasksync_api.schemas.auth.UserData,
    summary="Get current user profile",
    responses={
        401: {"description": "Not authenticated", "model": tasksync_api.schemas.responses.ErrorResponse},
        404: {"description": "User not found", "model": tasksync_api.schemas.responses.ErrorResponse}
    }
)
async def get_me(
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    try:
        user = await tasksync_api.services.user_service.get_user_by_id(session, current_user.id)
    except tasksync_api.errors.UserNotFoundError as e:
        return tasksync_api.utils.responses.api_error_response(e, status_code=404)

    data = tasksync_api.schemas.auth.UserData(user=_user_profile(user))
    return tasksync_api.utils.responses.success_response(data.to_wire())


@router.post(
    "/verify",
    response_model=tasksync_api.schemas.auth.VerifyData,
    summary="Verify access token",
    description="Confirms the access token was accepted. Does not refresh it.",
    responses={
        401: {"description": "Not authenticated", "model": tasksync_api.schemas.responses.ErrorResponse}
    }
)
async def verify(
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    )
):
    data = tasksync_api.schemas.auth.VerifyData(valid=True, user=current_user)
    return tasksync_api.utils.responses.success_response(data.to_wire())
