import datetime
import typing
import pydantic
import pydantic.alias_generators
import tasksync_api.utils.time


class CamelModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        alias_generator=pydantic.alias_generators.to_camel,
        populate_by_name=True,
        from_attributes=True
    )

    @pydantic.field_serializer("*", mode="wrap", when_used="json")
    def _serialize_datetimes(self, value: typing.Any, handler) -> typing.Any:
        # Timestamps are stored as naive UTC.
        if isinstance(value, datetime.datetime):
            return tasksync_api.utils.time.isoformat_utc(value)
        return handler(value)

    def to_wire(self) -> typing.Dict[str, typing.Any]:
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(pydantic.BaseModel):
    error: str
    code: str
    details: typing.Dict[str, typing.Any] = pydantic.Field(default_factory=dict)

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Token expired",
                "code": "TOKEN_EXPIRED",
                "details": {}
            }
        }
    )


class MessageResponse(pydantic.BaseModel):
    message: str


class HealthResponse(pydantic.BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
