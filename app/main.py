from typing import Dict

from fastapi import FastAPI

from app.core.config import settings
from app.log.logging import logger
from app.routers.healthcheck_router import router as healthcheck_router
from app.routers.insights_router import router as insights_router
from app.routers.matches_router import router as matches_router
from app.routers.search_router import router as search_router
from app.routers.webhook_router import router as webhook_router
from app.tasks.search_store import setup_search_store, teardown_search_store


API_PREFIX = "/api"


async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown.

    Args:
        app: FastAPI application instance
    """
    try:
        logger.info("Starting application", service=settings.service_name, environment=settings.environment)

        await setup_search_store()
        logger.info("Search store initialized")

        logger.info("Application started successfully")

        yield

        logger.info("Shutting down application")

        await teardown_search_store()
        logger.info("Search store shutdown completed")

        logger.info("Application shut down successfully")

    except Exception as e:
        logger.exception("Application lifecycle error: {error}", error=str(e))
        raise


app = FastAPI(
    lifespan=lifespan,
    title="Skill Match API",
    description="Job search lifecycle, semantic re-ranking and skill gap insights.",
    version="1.0.0",
)

app.include_router(search_router, prefix=API_PREFIX)
app.include_router(insights_router, prefix=API_PREFIX)
app.include_router(matches_router, prefix=API_PREFIX)
app.include_router(webhook_router, prefix=API_PREFIX)
app.include_router(healthcheck_router)


@app.get("/")
async def root() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dict containing the service status message
    """
    return {"message": "Skill Match Service is running!"}
