from fastapi import APIRouter, HTTPException

from app.log.logging import logger
from app.services.workflow_client import workflow_client
from app.tasks.search_store import SearchStore

router = APIRouter(tags=["healthcheck"])


@router.get(
    "/healthcheck",
    description="Reports the search store and workflow engine state",
    responses={
        200: {"description": "Health check passed"},
        500: {"description": "Health check failed"},
    },
)
async def health_check():
    try:
        workflow_engine = await workflow_client.health()
        await SearchStore.list_matches(limit=1)
    except Exception as e:
        logger.exception("Health check failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    # The workflow engine is optional: searches degrade to the demo fallback
    return {
        "status": "healthy",
        "checks": {
            "search_store": "healthy",
            "workflow_engine": "healthy" if workflow_engine else "unavailable",
        },
    }
