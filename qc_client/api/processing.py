# qc_client/api/processing.py
from typing import TYPE_CHECKING, Any, Dict

from .client import require_id

if TYPE_CHECKING:
    from .client import QCApiClient

class ProcessingApi:
    """Low-level file processing triggers, bypassing the workflow"""

    def __init__(self, client: "QCApiClient"):
        self._client = client

    async def process_session(self, session_id: str) -> Dict[str, Any]:
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/processing/process/{session_id}")
        return self._client.ack(response)

    async def get_processing_status(self, session_id: str) -> Dict[str, Any]:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/processing/status/{session_id}")
        return self._client.ack(response)

    async def process_file(self, file_id: str) -> Dict[str, Any]:
        require_id(file_id, "file id")
        response = await self._client.request("POST", f"/processing/process-file/{file_id}")
        return self._client.ack(response)
