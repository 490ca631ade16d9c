import tasksync_api.models.base
import tasksync_api.models.user
import tasksync_api.models.refresh_token
import tasksync_api.models.task

__all__ = [
    "base",
    "user",
    "refresh_token",
    "task",
]
