import fastapi
import logging
import typing
import sqlalchemy.ext.asyncio
import tasksync_api.database
import tasksync_api.middleware.auth
import tasksync_api.models.task
import tasksync_api.schemas.auth
import tasksync_api.schemas.responses
import tasksync_api.schemas.tasks
import tasksync_api.services.task_service
import tasksync_api.utils.responses

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/tasks", tags=["Tasks"])

_NOT_FOUND = {
    404: {"description": "Task not found", "model": tasksync_api.schemas.responses.ErrorResponse}
}


def _task_wire(task: tasksync_api.models.task.Task) -> typing.Dict[str, typing.Any]:
    return tasksync_api.schemas.tasks.TaskSchema(
        id=task.task_id,
        user_id=task.user_id,
        title=task.title,
        description=task.description,
        completed=task.completed,
        priority=task.priority,
        due_date=task.due_date,
        created_at=task.created_at,
        updated_at=task.updated_at
    ).to_wire()


@router.get(
    "",
    summary="List tasks",
    description="Paginated list of the caller's tasks with optional status and priority filters."
)
async def list_tasks(
    page: int = fastapi.Query(1, ge=1),
    limit: int = fastapi.Query(20, ge=1, le=tasksync_api.services.task_service.MAX_PAGE_SIZE),
    status: typing.Literal["all", "pending", "completed"] = fastapi.Query("all"),
    priority: typing.Optional[tasksync_api.schemas.tasks.Priority] = fastapi.Query(None),
    sort_by: typing.Literal["createdAt", "dueDate", "priority"] = fastapi.Query("createdAt", alias="sortBy"),
    sort_order: typing.Literal["asc", "desc"] = fastapi.Query("desc", alias="sortOrder"),
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    tasks, meta = await tasksync_api.services.task_service.list_tasks(
        session,
        current_user.id,
        page=page,
        limit=limit,
        status=status,
        priority=priority,
        sort_by=sort_by,
        sort_order=sort_order
    )
    return tasksync_api.utils.responses.success_response({
        "tasks": [_task_wire(task) for task in tasks],
        "meta": tasksync_api.schemas.tasks.TaskListMeta(**meta).model_dump(by_alias=True)
    })


@router.get("/{task_id}", summary="Get task", responses=_NOT_FOUND)
async def get_task(
    task_id: int,
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    task = await tasksync_api.services.task_service.get_task(session, current_user.id, task_id)
    return tasksync_api.utils.responses.success_response({"task": _task_wire(task)})


@router.post("", summary="Create task", status_code=201)
async def create_task(
    body: tasksync_api.schemas.tasks.TaskCreateRequest,
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    task = await tasksync_api.services.task_service.create_task(
        session,
        current_user.id,
        title=body.title,
        description=body.description,
        completed=body.completed,
        priority=body.priority,
        due_date=body.due_date
    )
    logger.info(f"User {current_user.id} created task {task.task_id}")
    return tasksync_api.utils.responses.success_response({"task": _task_wire(task)}, status_code=201)


@router.patch(
    "/{task_id}",
    summary="Update task",
    description="Partial update. Sending `dueDate: null` clears the due date.",
    responses=_NOT_FOUND
)
async def update_task(
    task_id: int,
    body: tasksync_api.schemas.tasks.TaskUpdateRequest,
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    changes = {field: getattr(body, field) for field in body.model_fields_set}
    task = await tasksync_api.services.task_service.update_task(
        session,
        current_user.id,
        task_id,
        changes
    )
    return tasksync_api.utils.responses.success_response({"task": _task_wire(task)})


@router.delete("/{task_id}", summary="Delete task", responses=_NOT_FOUND)
async def delete_task(
    task_id: int,
    current_user: tasksync_api.schemas.auth.CurrentUser = fastapi.Depends(
        tasksync_api.middleware.auth.require_user
    ),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(tasksync_api.database.get_session)
):
    await tasksync_api.services.task_service.delete_task(session, current_user.id, task_id)
    logger.info(f"User {current_user.id} deleted task {task_id}")
    return tasksync_api.utils.responses.success_response({"message": "Task deleted successfully"})
