import datetime
import math
import typing
import sqlalchemy
import sqlalchemy.ext.asyncio
from sqlalchemy import select, func
import tasksync_api.errors
import tasksync_api.models.task
import tasksync_api.utils.time

Task = tasksync_api.models.task.Task

SORTABLE_COLUMNS = {
    "createdAt": Task.created_at,
    "dueDate": Task.due_date,
    "priority": Task.priority,
}

MAX_PAGE_SIZE = 100


async def list_tasks(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    status: str = "all",
    priority: typing.Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc"
) -> typing.Tuple[typing.List[Task], typing.Dict[str, int]]:
    limit = min(limit, MAX_PAGE_SIZE)
    filters = [Task.user_id == user_id]
    if status == "completed":
        filters.append(Task.completed.is_(True))
    elif status == "pending":
        filters.append(Task.completed.is_(False))
    if priority:
        filters.append(Task.priority == priority)

    total_result = await session.execute(select(func.count()).select_from(Task).filter(*filters))
    total = total_result.scalar_one()

    column = SORTABLE_COLUMNS.get(sort_by, Task.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    result = await session.execute(
        select(Task)
        .filter(*filters)
        .order_by(ordering, Task.task_id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    tasks = list(result.scalars().all())

    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return tasks, meta


async def get_task(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    task_id: int
) -> Task:
    result = await session.execute(
        select(Task).filter(Task.task_id == task_id, Task.user_id == user_id)
    )
    task = result.scalar_one_or_none()
    if not task:
        raise tasksync_api.errors.TaskNotFoundError("task_not_found")
    return task


async def create_task(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    title: str,
    description: typing.Optional[str] = None,
    completed: bool = False,
    priority: str = "medium",
    due_date: typing.Optional[datetime.datetime] = None
) -> Task:
    task = Task(
        user_id=user_id,
        title=title.strip(),
        description=(description or "").strip() or None,
        completed=completed,
        priority=priority,
        due_date=tasksync_api.utils.time.to_naive_utc(due_date) if due_date else None
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def update_task(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    task_id: int,
    changes: typing.Dict[str, typing.Any]
) -> Task:
    task = await get_task(session, user_id, task_id)

    if "title" in changes and changes["title"] is not None:
        task.title = changes["title"].strip()
    if "description" in changes:
        task.description = (changes["description"] or "").strip() or None
    if "completed" in changes and changes["completed"] is not None:
        task.completed = changes["completed"]
    if "priority" in changes and changes["priority"] is not None:
        task.priority = changes["priority"]
    if "due_date" in changes:
        due_date = changes["due_date"]
        task.due_date = tasksync_api.utils.time.to_naive_utc(due_date) if due_date else None

    await session.commit()
    await session.refresh(task)
    return task


async def delete_task(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: int,
    task_id: int
) -> None:
    task = await get_task(session, user_id, task_id)
    await session.delete(task)
    await session.commit()
