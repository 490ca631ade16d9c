import asyncio
import contextlib
import logging
import signal
import sys
import fastapi
import fastapi.middleware.cors
import uvicorn
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import tasksync_api.config
import tasksync_api.database
import tasksync_api.errors
import tasksync_api.middleware.logging as logging_middleware
import tasksync_api.middleware.rate_limit as rate_limit_middleware
import tasksync_api.routes.auth
import tasksync_api.routes.health
import tasksync_api.routes.tasks
import tasksync_api.utils.responses
import tasksync_api.workers.token_cleanup

settings = tasksync_api.config.settings
limiter = rate_limit_middleware.limiter

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    logger.info("Starting TaskSync API service...")
    await tasksync_api.database.init_db()

    shutdown_event = asyncio.Event()
    cleanup_task = None
    if settings.token_cleanup_enabled:
        cleanup_task = asyncio.create_task(
            tasksync_api.workers.token_cleanup.run_token_cleanup(shutdown_event)
        )
    logger.info("TaskSync API service started successfully")

    yield

    logger.info("Shutting down TaskSync API service...")
    shutdown_event.set()
    if cleanup_task:
        await cleanup_task
    await tasksync_api.database.close_db()
    logger.info("TaskSync API service shut down successfully")


def setup_cors(app: fastapi.FastAPI) -> None:
    origins = settings.cors_origins_list
    allow_any = "*" in origins
    app.add_middleware(
        fastapi.middleware.cors.CORSMiddleware,
        allow_origins=[] if allow_any else origins,
        allow_origin_regex=".*" if allow_any else None,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods.split(","),
        allow_headers=settings.cors_allow_headers.split(","),
        expose_headers=["X-Process-Time"]
    )


app = fastapi.FastAPI(
    title="TaskSync API",
    description="""
    ## TaskSync API

    Task management backend for the TaskSync mobile and web clients.

    ### Authentication

    - **Google sign-in**: exchange a Google ID token at `POST /auth/google`
    - **Access tokens**: 15-minute JWTs sent as `Authorization: Bearer <token>`
    - **Refresh tokens**: 7-day, single-use tokens rotated at `POST /auth/refresh`,
      returned in the body and as an HTTP-only `refreshToken` cookie

    ### Errors

    Failures answer with `{"error", "code", "details"}`. Clients refresh and
    retry once only when `code` is `TOKEN_EXPIRED`.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

if settings.env == "development":
    setup_cors(app)

logging_middleware.setup_logging_middleware(app)

app.state.limiter = limiter
if settings.rate_limit_enabled:
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_exception_handler(tasksync_api.errors.ApiError, tasksync_api.utils.responses.api_error_handler)
app.add_exception_handler(Exception, tasksync_api.utils.responses.unhandled_error_handler)

app.include_router(tasksync_api.routes.health.router)
app.include_router(tasksync_api.routes.auth.router)
app.include_router(tasksync_api.routes.tasks.router)


def handle_shutdown(signum, frame):
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    sys.exit(0)


if __name__ == "__main__":
    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    uvicorn.run(
        "tasksync_api.main:app",
        host=settings.api_host,
        port=settings.api_http_port,
        workers=settings.api_workers,
        log_level=settings.log_level.lower(),
        access_log=True
    )
