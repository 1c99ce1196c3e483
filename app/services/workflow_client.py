"""
Client for the workflow engine (n8n) that runs job searches and CV parsing.

Workflows are triggered through webhooks and report back asynchronously on
``POST /api/webhooks/n8n``.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.log.logging import logger


class WorkflowError(Exception):
    """Raised when a workflow webhook could not be triggered."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WorkflowResult(BaseModel):
    success: bool
    workflow_id: Optional[str] = None
    error: Optional[str] = None


class WorkflowClient:
    """Triggers workflow webhooks."""

    def __init__(
        self,
        base_url: str = settings.n8n_webhook_base_url,
        auth_header: Optional[str] = settings.n8n_webhook_auth_header,
        timeout: float = settings.n8n_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_header = auth_header
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": self.auth_header} if self.auth_header else None
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _post(self, workflow: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.post(f"/{workflow}", json=payload)
            except httpx.HTTPError as e:
                raise WorkflowError(str(e) or type(e).__name__) from e

        if response.is_error:
            logger.error(
                "Workflow webhook error",
                workflow=workflow,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise WorkflowError(
                f"Webhook request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def trigger(self, workflow: str, payload: Dict[str, Any]) -> WorkflowResult:
        """
        Trigger a workflow.

        Args:
            workflow: Workflow identifier, e.g. ``job-search``
            payload: JSON payload forwarded to the workflow

        Returns:
            WorkflowResult: ``success`` is False when the trigger failed; this
            method never raises for transport or HTTP errors
        """
        try:
            data = await self._post(workflow, payload)
        except WorkflowError as e:
            logger.warning(
                "Failed to trigger workflow",
                workflow=workflow,
                error=str(e),
                status_code=e.status_code,
            )
            return WorkflowResult(success=False, error=str(e))

        workflow_id = data.get("workflowId")
        logger.info("Workflow triggered", workflow=workflow, workflow_id=workflow_id)
        return WorkflowResult(
            success=True,
            workflow_id=str(workflow_id) if workflow_id is not None else None,
        )

    async def health(self) -> bool:
        """Return True when the workflow engine answers its health endpoint."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
        except httpx.HTTPError as e:
            logger.debug("Workflow engine unreachable", error=str(e))
            return False
        return response.is_success


workflow_client = WorkflowClient()
