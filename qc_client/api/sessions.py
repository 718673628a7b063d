# qc_client/api/sessions.py
from typing import TYPE_CHECKING

from ..schemas.session import Session, SessionListResponse
from .client import require_id

if TYPE_CHECKING:
    from .client import QCApiClient

class SessionApi:
    """Session management - create, list, get and delete analysis sessions"""

    def __init__(self, client: "QCApiClient"):
        self._client = client

    async def create(self) -> Session:
        """Create a new, empty analysis session"""
        response = await self._client.request("POST", "/sessions/", json={})
        return self._client.parse(response, Session)

    async def list(self, skip: int = 0, limit: int = 100) -> SessionListResponse:
        """List sessions, newest first"""
        response = await self._client.request("GET", "/sessions/", params={"skip": skip, "limit": limit})
        return self._client.parse(response, SessionListResponse)

    async def get(self, session_id: str) -> Session:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/sessions/{session_id}")
        return self._client.parse(response, Session)

    async def delete(self, session_id: str) -> None:
        """Delete a session with all of its files and results"""
        require_id(session_id, "session id")
        await self._client.request("DELETE", f"/sessions/{session_id}")
