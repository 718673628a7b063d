# qc_client/views/session_history.py
from typing import List

from ..services.session_store import SessionStore
from ..utils.formatting import format_date

class SessionHistoryView:
    """Past sessions, newest first"""

    def __init__(self, store: SessionStore):
        self.store = store

    async def refresh(self) -> bool:
        return await self.store.load_sessions()

    async def delete(self, session_id: str) -> bool:
        return await self.store.delete_session(session_id)

    def rows(self) -> List[dict]:
        return [
            {
                "id": session.id,
                "created": format_date(session.created_at),
                "status": session.status.value,
                "result": session.overall_result.value if session.overall_result else "-",
                "files": len(session.files or ()),
            }
            for session in self.store.state.sessions
        ]
