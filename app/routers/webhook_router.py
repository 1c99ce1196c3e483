"""
Callbacks from the workflow engine.

Every call must carry the shared secret in ``x-n8n-webhook-secret``.
"""

import hmac
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Header, HTTPException, status
from pydantic import ValidationError

from app.core.config import settings
from app.log.logging import logger
from app.schemas.search import SearchStatus
from app.schemas.webhook import (
    CVParsedPayload,
    JobMatchesPayload,
    WebhookAck,
    WebhookEnvelope,
    WebhookEventType,
)
from app.services import search_service
from app.services.search_service import SearchNotFound


router = APIRouter(
    prefix="/webhooks",
    tags=["webhooks"],
    responses={
        400: {"description": "Invalid payload"},
        401: {"description": "Invalid webhook secret"},
        404: {"description": "Search not found"},
    },
)


def _authorized(secret: Optional[str]) -> bool:
    if not secret:
        return False
    return hmac.compare_digest(secret.encode(), settings.n8n_webhook_secret.encode())


def _invalid_payload() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")


@router.post(
    "/n8n",
    response_model=WebhookAck,
    summary="Workflow Callback",
    description="Receives job matches, parsed CVs and status updates from the workflow engine.",
)
async def workflow_callback(
    body: Dict[str, Any] = Body(...),
    secret: Optional[str] = Header(None, alias="x-n8n-webhook-secret"),
):
    if not _authorized(secret):
        logger.warning("Rejected webhook with invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        envelope = WebhookEnvelope.model_validate(body)
    except ValidationError:
        logger.warning("Invalid webhook envelope", event_type=body.get("type"))
        raise _invalid_payload()

    logger.info("Webhook received", event_type=envelope.type)

    try:
        if envelope.type is WebhookEventType.JOB_MATCHES:
            payload = JobMatchesPayload.model_validate(envelope.payload)
            processed = await search_service.ingest_job_matches(payload)
            return WebhookAck(processed=processed)

        if envelope.type is WebhookEventType.CV_PARSED:
            await search_service.ingest_cv_parsed(CVParsedPayload.model_validate(envelope.payload))
            return WebhookAck(processed=1)

        if envelope.type is WebhookEventType.SEARCH_STATUS:
            search_id = envelope.payload.get("searchId")
            new_status = SearchStatus(envelope.payload.get("status"))
            if not isinstance(search_id, str) or new_status is SearchStatus.IDLE:
                raise _invalid_payload()
            updated = await search_service.ingest_search_status(search_id, new_status)
            return WebhookAck(processed=int(updated))

    except HTTPException:
        raise
    except (ValidationError, ValueError):
        logger.warning("Invalid webhook payload", event_type=envelope.type)
        raise _invalid_payload()
    except SearchNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Search {e} not found.")
    except Exception:
        logger.exception("Webhook processing error", event_type=envelope.type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )

    # document-generated callbacks are acknowledged without processing
    return WebhookAck(processed=0)
