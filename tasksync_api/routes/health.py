import fastapi
import tasksync_api.middleware.rate_limit
import tasksync_api.schemas.responses
import tasksync_api.utils.time

router = fastapi.APIRouter(prefix="/health", tags=["Health"])

limiter = tasksync_api.middleware.rate_limit.limiter


@router.get(
    "",
    response_model=tasksync_api.schemas.responses.HealthResponse,
    summary="Basic health check",
    description="Returns basic health status of the API service"
)
@limiter.limit(tasksync_api.middleware.rate_limit.get_default_limit())
async def health(request: fastapi.Request):
    return tasksync_api.schemas.responses.HealthResponse(
        status="healthy",
        service="tasksync-api",
        version="1.0.0",
        timestamp=tasksync_api.utils.time.isoformat_utc(tasksync_api.utils.time.utcnow())
    )
