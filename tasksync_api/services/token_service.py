import datetime
import hashlib
import logging
import secrets
import typing
import jwt
import sqlalchemy
import sqlalchemy.ext.asyncio
import sqlalchemy.orm
from sqlalchemy import select, update, delete
import tasksync_api.config
import tasksync_api.errors
import tasksync_api.models.refresh_token
import tasksync_api.utils.time

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 40

RefreshToken = tasksync_api.models.refresh_token.RefreshToken


def create_access_token(user_id: int, email: str) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + datetime.timedelta(
            minutes=tasksync_api.config.settings.jwt_access_token_expire_minutes
        )
    }
    return jwt.encode(
        payload,
        tasksync_api.config.settings.jwt_secret_key,
        algorithm=tasksync_api.config.settings.jwt_algorithm
    )


def decode_access_token(token: str) -> typing.Dict[str, typing.Any]:
    return jwt.decode(
        token,
        tasksync_api.config.settings.jwt_secret_key,
        algorithms=[tasksync_api.config.settings.jwt_algorithm]
    )


def generate_refresh_token_value() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


def _refresh_expiry() -> datetime.datetime:
    return tasksync_api.utils.time.utcnow() + datetime.timedelta(
        days=tasksync_api.config.settings.jwt_refresh_token_expire_days
    )


async def issue_refresh_token(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    commit: bool = True
) -> typing.Tuple[RefreshToken, str]:
    raw_token = generate_refresh_token_value()
    token = RefreshToken(
        user_id=user_id,
        token_hash=hash_token(raw_token),
        expires_at=_refresh_expiry(),
        is_revoked=False
    )
    session.add(token)
    if commit:
        await session.commit()
    else:
        await session.flush()
    return token, raw_token


async def verify_refresh_token(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    raw_token: str
) -> RefreshToken:
    result = await session.execute(
        select(RefreshToken)
        .options(sqlalchemy.orm.selectinload(RefreshToken.user))
        .filter(RefreshToken.token_hash == hash_token(raw_token))
    )
    token = result.scalar_one_or_none()

    if not token:
        raise tasksync_api.errors.InvalidTokenError("token_not_found")

    if token.is_revoked:
        raise tasksync_api.errors.RevokedTokenError("token_revoked")

    if token.expires_at <= tasksync_api.utils.time.utcnow():
        raise tasksync_api.errors.ExpiredTokenError("token_expired")

    if token.user is None:
        raise tasksync_api.errors.UserNotFoundError("user_not_found")

    return token


async def rotate_refresh_token(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    old_token: RefreshToken
) -> typing.Tuple[RefreshToken, str]:
    """Revoke ``old_token`` and issue its replacement in one transaction.

    The revoke is a conditional UPDATE on ``is_revoked = false``, so of two
    concurrent rotations of the same token only one matches a row; the other
    raises ``RevokedTokenError`` and never issues a token.
    """
    try:
        result = await session.execute(
            update(RefreshToken)
            .where(
                RefreshToken.token_id == old_token.token_id,
                RefreshToken.is_revoked.is_(False)
            )
            .values(is_revoked=True, revoked_at=tasksync_api.utils.time.utcnow())
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount != 1:
            raise tasksync_api.errors.RevokedTokenError("token_revoked")

        new_token, raw_token = await issue_refresh_token(session, old_token.user_id, commit=False)
        old_token.replaced_by_token_id = new_token.token_id
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    return new_token, raw_token


async def revoke_refresh_token(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    raw_token: str
) -> bool:
    result = await session.execute(
        update(RefreshToken)
        .where(
            RefreshToken.token_hash == hash_token(raw_token),
            RefreshToken.is_revoked.is_(False)
        )
        .values(is_revoked=True, revoked_at=tasksync_api.utils.time.utcnow())
    )
    await session.commit()
    return result.rowcount > 0


async def revoke_all_user_tokens(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int
) -> int:
    result = await session.execute(
        update(RefreshToken)
        .where(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False)
        )
        .values(is_revoked=True, revoked_at=tasksync_api.utils.time.utcnow())
    )
    await session.commit()
    logger.info(f"Revoked {result.rowcount} refresh tokens for user {user_id}")
    return result.rowcount


async def cleanup_expired_tokens(session: sqlalchemy.ext.asyncio.AsyncSession) -> int:
    result = await session.execute(
        delete(RefreshToken).where(
            sqlalchemy.or_(
                RefreshToken.expires_at < tasksync_api.utils.time.utcnow(),
                RefreshToken.is_revoked.is_(True)
            )
        )
    )
    await session.commit()
    return result.rowcount
