# qc_client/views/dashboard.py
import logging
from typing import Iterable, List, Optional, Tuple

from ..services.session_store import SessionStore
from ..utils.file_handlers import LocalFile, partition_selection
from ..utils.formatting import format_file_size, get_file_type_label

logger = logging.getLogger(__name__)

class DashboardView:
    """
    Start-a-new-analysis screen.

    Step 1: create a session. Step 2: pick files (kept locally until
    uploaded), then upload and move on to the session's details page.
    """

    def __init__(self, store: SessionStore):
        self.store = store
        self.current_session_id: Optional[str] = None
        self.selected_files: List[LocalFile] = []

    @property
    def is_busy(self) -> bool:
        state = self.store.state
        return state.is_loading or state.is_uploading_files

    async def create_session(self) -> bool:
        session = await self.store.create_session()
        if session is None:
            return False
        self.current_session_id = session.id
        self.selected_files = []
        return True

    def select_files(self, files: Iterable[LocalFile]) -> List[Tuple[LocalFile, str]]:
        """Add picked files to the selection; returns the rejected ones with a reason"""
        accepted, rejected = partition_selection(files)
        for local_file, reason in rejected:
            logger.warning(f"[Dashboard] Rejected {local_file.filename}: {reason}")
        self.selected_files.extend(accepted)
        return rejected

    def remove_file(self, index: int) -> None:
        if 0 <= index < len(self.selected_files):
            del self.selected_files[index]

    def selection_rows(self) -> List[dict]:
        return [
            {
                "filename": f.filename,
                "type": get_file_type_label(f.file_type),
                "size": format_file_size(f.size),
            }
            for f in self.selected_files
        ]

    async def upload_and_analyze(self) -> Optional[str]:
        """Upload the selection; returns the route to navigate to on success"""
        if not self.current_session_id or not self.selected_files:
            return None

        success = await self.store.upload_files(self.current_session_id, list(self.selected_files))
        if not success:
            return None
        self.selected_files = []
        return f"/session/{self.current_session_id}"
