# qc_client/api/workflow.py
from typing import TYPE_CHECKING, Any, Dict

from ..schemas.workflow import WorkflowStatus
from .client import require_id

if TYPE_CHECKING:
    from .client import QCApiClient

class WorkflowApi:
    """Analysis pipeline - trigger and monitor processing + validation"""

    def __init__(self, client: "QCApiClient"):
        self._client = client

    async def analyze(self, session_id: str) -> Dict[str, Any]:
        """Start the pipeline in the background; progress is observed via get_status"""
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/workflow/analyze/{session_id}")
        return self._client.ack(response)

    async def analyze_now(self, session_id: str) -> Dict[str, Any]:
        """Run the pipeline synchronously; returns once the server is done"""
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/workflow/analyze-now/{session_id}")
        return self._client.ack(response)

    async def get_status(self, session_id: str) -> WorkflowStatus:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/workflow/status/{session_id}")
        return self._client.parse(response, WorkflowStatus)

    async def retry(self, session_id: str) -> Dict[str, Any]:
        """Re-run the pipeline for files that failed"""
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/workflow/retry/{session_id}")
        return self._client.ack(response)
