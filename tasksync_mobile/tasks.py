import logging
import typing
import tasksync_mobile.reminders
import tasksync_mobile.token_manager

logger = logging.getLogger(__name__)


class TaskClient:
    """Task CRUD against the API, keeping local reminders in step with the server."""

    def __init__(
        self,
        token_manager: tasksync_mobile.token_manager.TokenManager,
        scheduler: tasksync_mobile.reminders.ReminderScheduler
    ):
        self.token_manager = token_manager
        self.scheduler = scheduler

    async def _request(self, method: str, path: str, **kwargs) -> typing.Dict[str, typing.Any]:
        response = await self.token_manager.authenticated_request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    async def list_tasks(
        self,
        page: int = 1,
        limit: int = 20,
        status: str = "all",
        priority: typing.Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc"
    ) -> typing.Dict[str, typing.Any]:
        params = {
            "page": page,
            "limit": limit,
            "status": status,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        if priority:
            params["priority"] = priority
        return await self._request("GET", "/tasks", params=params)

    async def get_task(self, task_id: int) -> typing.Dict[str, typing.Any]:
        data = await self._request("GET", f"/tasks/{task_id}")
        return data["task"]

    async def create_task(
        self,
        payload: typing.Dict[str, typing.Any],
        reminder_offsets: typing.Optional[typing.List[int]] = None
    ) -> typing.Dict[str, typing.Any]:
        data = await self._request("POST", "/tasks", json=payload)
        task = data["task"]

        if task.get("dueDate") and not task.get("completed"):
            await self.scheduler.schedule_task_reminders(
                tasksync_mobile.reminders.ReminderTask.from_wire(task, reminder_offsets)
            )
        return task

    async def update_task(
        self,
        task_id: int,
        changes: typing.Dict[str, typing.Any],
        reminder_offsets: typing.Optional[typing.List[int]] = None
    ) -> typing.Dict[str, typing.Any]:
        data = await self._request("PATCH", f"/tasks/{task_id}", json=changes)
        task = data["task"]

        if task.get("completed") or not task.get("dueDate"):
            cancelled = await self.scheduler.cancel_task_reminders(task_id)
            if cancelled:
                logger.info(f"Cancelled {cancelled} reminders for task {task_id}")
        elif "dueDate" in changes or "completed" in changes or reminder_offsets is not None:
            await self.scheduler.reschedule_task_reminders(
                tasksync_mobile.reminders.ReminderTask.from_wire(task, reminder_offsets)
            )
        return task

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")
        await self.scheduler.cancel_task_reminders(task_id)
