from slowapi import Limiter
from slowapi.util import get_remote_address
import tasksync_api.config


def get_limiter() -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{tasksync_api.config.settings.rate_limit_per_minute}/minute"],
        enabled=tasksync_api.config.settings.rate_limit_enabled
    )


limiter = get_limiter()


def get_auth_limit() -> str:
    return f"{tasksync_api.config.settings.rate_limit_auth_per_minute}/minute"


def get_default_limit() -> str:
    return f"{tasksync_api.config.settings.rate_limit_per_minute}/minute"
