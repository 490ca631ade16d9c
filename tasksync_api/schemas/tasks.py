import datetime
import typing
import pydantic
import tasksync_api.schemas.responses

Priority = typing.Literal["low", "medium", "high", "urgent"]


class TaskCreateRequest(tasksync_api.schemas.responses.CamelModel):
    title: str = pydantic.Field(min_length=1, max_length=255)
    description: typing.Optional[str] = pydantic.Field(default=None, max_length=1000)
    completed: bool = False
    priority: Priority = "medium"
    due_date: typing.Optional[datetime.datetime] = None

    @pydantic.field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Renew passport",
                "description": "Bring two photos",
                "priority": "high",
                "dueDate": "2026-11-01T09:00:00Z"
            }
        }
    )


class TaskUpdateRequest(tasksync_api.schemas.responses.CamelModel):
    title: typing.Optional[str] = pydantic.Field(default=None, min_length=1, max_length=255)
    description: typing.Optional[str] = pydantic.Field(default=None, max_length=1000)
    completed: typing.Optional[bool] = None
    priority: typing.Optional[Priority] = None
    due_date: typing.Optional[datetime.datetime] = None

    @pydantic.field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value


class TaskSchema(tasksync_api.schemas.responses.CamelModel):
    id: int
    user_id: int
    title: str
    description: typing.Optional[str] = None
    completed: bool
    priority: str
    due_date: typing.Optional[datetime.datetime] = None
    created_at: typing.Optional[datetime.datetime] = None
    updated_at: typing.Optional[datetime.datetime] = None


class TaskListMeta(pydantic.BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = pydantic.Field(serialization_alias="totalPages")
