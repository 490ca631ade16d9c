import logging
import typing
import fastapi
import fastapi.encoders
import fastapi.responses
import tasksync_api.errors
import tasksync_api.schemas.responses

logger = logging.getLogger(__name__)


def success_response(data: typing.Any, status_code: int = 200) -> fastapi.responses.JSONResponse:
    return fastapi.responses.JSONResponse(
        status_code=status_code,
        content=fastapi.encoders.jsonable_encoder(data)
    )


def error_response(
    code: str,
    message: str,
    details: typing.Dict[str, typing.Any] = None,
    status_code: int = 400
) -> fastapi.responses.JSONResponse:
    response = tasksync_api.schemas.responses.ErrorResponse(
        error=message,
        code=code,
        details=details or {}
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return fastapi.responses.JSONResponse(
        status_code=status_code,
        content=response.model_dump(),
        headers=headers
    )


def api_error_response(
    error: tasksync_api.errors.ApiError,
    status_code: typing.Optional[int] = None
) -> fastapi.responses.JSONResponse:
    return error_response(
        code=error.code,
        message=error.message,
        details=error.details,
        status_code=status_code or error.status_code
    )


async def api_error_handler(
    request: fastapi.Request,
    exc: tasksync_api.errors.ApiError
) -> fastapi.responses.JSONResponse:
    return api_error_response(exc)


async def unhandled_error_handler(
    request: fastapi.Request,
    exc: Exception
) -> fastapi.responses.JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return api_error_response(tasksync_api.errors.ApiError())
