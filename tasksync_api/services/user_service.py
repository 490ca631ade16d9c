import datetime
import logging
import sqlalchemy
import sqlalchemy.ext.asyncio
from sqlalchemy import select
import tasksync_api.errors
import tasksync_api.models.user
import tasksync_api.services.google_verifier
import tasksync_api.utils.time

logger = logging.getLogger(__name__)


def _next_login_time(previous: datetime.datetime) -> datetime.datetime:
    now = tasksync_api.utils.time.utcnow()
    if previous and now <= previous:
        return previous + datetime.timedelta(microseconds=1)
    return now


async def find_or_create_user(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    identity: tasksync_api.services.google_verifier.GoogleIdentity
) -> tasksync_api.models.user.User:
    result = await session.execute(
        select(tasksync_api.models.user.User).filter(
            sqlalchemy.or_(
                tasksync_api.models.user.User.google_id == identity.google_id,
                tasksync_api.models.user.User.email == identity.email
            )
        ).order_by(tasksync_api.models.user.User.user_id).limit(1)
    )
    user = result.scalars().first()

    if user:
        user.name = identity.name
        user.avatar_url = identity.avatar
        user.last_login = _next_login_time(user.last_login)
    else:
        user = tasksync_api.models.user.User(
            google_id=identity.google_id,
            email=identity.email,
            name=identity.name,
            avatar_url=identity.avatar,
            last_login=tasksync_api.utils.time.utcnow()
        )
        session.add(user)
        logger.info(f"Created user for {identity.email}")

    await session.commit()
    await session.refresh(user)
    return user


async def get_user_by_id(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int
) -> tasksync_api.models.user.User:
    result = await session.execute(
        select(tasksync_api.models.user.User).filter(
            tasksync_api.models.user.User.user_id == user_id
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise tasksync_api.errors.UserNotFoundError("user_not_found")
    return user
