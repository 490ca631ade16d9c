import asyncio
import logging
import os
import typing
import sqlalchemy.ext.asyncio
import tasksync_api.config

logger = logging.getLogger(__name__)

engine: sqlalchemy.ext.asyncio.AsyncEngine = None
async_session_maker: sqlalchemy.ext.asyncio.async_sessionmaker = None


async def run_migrations() -> None:
    from alembic import command
    from alembic.config import Config

    alembic_ini = os.path.join(os.path.dirname(__file__), '..', 'alembic.ini')
    alembic_cfg = Config(alembic_ini)
    alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(__file__), '..', 'alembic'))
    alembic_cfg.set_main_option("sqlalchemy.url", tasksync_api.config.settings.database_url)

    try:
        await asyncio.get_running_loop().run_in_executor(
            None,
            lambda: command.upgrade(alembic_cfg, "head")
        )
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Error running migrations: {str(e)}")
        raise


async def init_db() -> None:
    global engine, async_session_maker

    logger.info("Running database migrations")
    await run_migrations()

    engine = sqlalchemy.ext.asyncio.create_async_engine(
        tasksync_api.config.settings.database_url,
        pool_size=tasksync_api.config.settings.db_pool_size,
        max_overflow=tasksync_api.config.settings.db_max_overflow,
        pool_pre_ping=True,
        echo=tasksync_api.config.settings.debug
    )

    async_session_maker = sqlalchemy.ext.asyncio.async_sessionmaker(
        engine,
        class_=sqlalchemy.ext.asyncio.AsyncSession,
        expire_on_commit=False
    )


async def close_db() -> None:
    global engine
    if engine:
        await engine.dispose()


async def get_session() -> typing.AsyncGenerator[sqlalchemy.ext.asyncio.AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
