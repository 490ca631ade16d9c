"""Typed failures raised by the authentication and task services.

Each error carries the machine-readable ``code`` clients switch on and the
HTTP status the API answers with. The exception message is a short
snake_case key (``"token_revoked"``) that is safe to log and to return.
"""
import typing


class ApiError(Exception):
    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        key: typing.Optional[str] = None,
        details: typing.Optional[typing.Dict[str, typing.Any]] = None
    ):
        super().__init__(key or self.code.lower())
        self.details = details or {}


class InvalidTokenError(ApiError):
    code = "INVALID_TOKEN"
    status_code = 401
    message = "Invalid token"


class ExpiredTokenError(ApiError):
    code = "TOKEN_EXPIRED"
    status_code = 401
    message = "Token expired"


class RevokedTokenError(ApiError):
    code = "TOKEN_REVOKED"
    status_code = 401
    message = "Token has been revoked"


class InvalidTokenTypeError(ApiError):
    code = "INVALID_TOKEN_TYPE"
    status_code = 401
    message = "Invalid token type"


class UserNotFoundError(ApiError):
    code = "USER_NOT_FOUND"
    status_code = 401
    message = "User no longer exists"


class NoTokenError(ApiError):
    code = "NO_TOKEN"
    status_code = 401
    message = "No authorization header"


class NoRefreshTokenError(ApiError):
    code = "NO_REFRESH_TOKEN"
    status_code = 401
    message = "No refresh token provided"


class AuthenticationFailedError(ApiError):
    code = "AUTHENTICATION_FAILED"
    status_code = 401
    message = "Authentication failed"


class RefreshFailedError(ApiError):
    code = "REFRESH_FAILED"
    status_code = 401
    message = "Token refresh failed"


class TaskNotFoundError(ApiError):
    code = "TASK_NOT_FOUND"
    status_code = 404
    message = "Task not found"
