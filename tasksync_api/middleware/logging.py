import time
import logging
import fastapi
import starlette.middleware.base

logger = logging.getLogger(__name__)


def _user_label(request: fastapi.Request) -> str:
    current_user = getattr(request.state, "current_user", None)
    return f"user={current_user.id}" if current_user else "user=anonymous"


class LoggingMiddleware(starlette.middleware.base.BaseHTTPMiddleware):
    async def dispatch(self, request: fastapi.Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        message = (
            f"{request.method} {request.url.path} {_user_label(request)} "
            f"- Status: {response.status_code} - Duration: {process_time:.3f}s"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code in (401, 403):
            logger.warning(message)
        else:
            logger.info(message)

        response.headers["X-Process-Time"] = f"{process_time:.6f}"

        return response


def setup_logging_middleware(app: fastapi.FastAPI):
    app.add_middleware(LoggingMiddleware)
