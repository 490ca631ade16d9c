import asyncio
import logging
import tasksync_api.config
import tasksync_api.database
import tasksync_api.services.token_service

logger = logging.getLogger(__name__)


async def cleanup_once() -> int:
    async with tasksync_api.database.async_session_maker() as session:
        removed = await tasksync_api.services.token_service.cleanup_expired_tokens(session)
    logger.info(f"Refresh token cleanup removed {removed} expired or revoked tokens")
    return removed


async def run_token_cleanup(shutdown_event: asyncio.Event) -> None:
    logger.info("Refresh token cleanup task started")
    while not shutdown_event.is_set():
        try:
            await asyncio.wait_for(
                shutdown_event.wait(),
                timeout=tasksync_api.config.settings.token_cleanup_interval_minutes * 60
            )
        except asyncio.TimeoutError:
            pass
        except asyncio.CancelledError:
            break

        if shutdown_event.is_set() or not tasksync_api.config.settings.token_cleanup_enabled:
            break

        try:
            await cleanup_once()
        except Exception as e:
            logger.error(f"Refresh token cleanup failed: {str(e)}")

    logger.info("Refresh token cleanup task stopped")
