class ClientError(Exception):
    pass


class SessionEndedError(ClientError):
    """The refresh token was rejected; stored credentials have been cleared."""


class NotAuthenticatedError(ClientError):
    pass


class LoginFailedError(ClientError):
    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotificationScheduleFailed(ClientError):
    pass
