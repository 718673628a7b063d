# qc_client/views/session_details.py
from typing import Optional, Set, Tuple

from ..models.file import ProcessingStatus
from ..models.workflow import WorkflowStage
from ..schemas.file import UploadedFile
from ..schemas.result import ValidationResult
from ..schemas.workflow import WorkflowStatus
from ..services.session_store import SessionStore

class SessionDetailsView:
    """
    Details page of one session.

    mount() loads what the page shows; unmount() stops the session's
    poller so nothing keeps updating a page that is gone.
    """

    def __init__(self, store: SessionStore, session_id: str):
        self.store = store
        self.session_id = session_id
        self.expanded: Set[str] = set()
        self.mounted = False

    async def mount(self) -> bool:
        self.mounted = True
        loaded = await self.store.load_session(self.session_id)
        if not loaded:
            return False
        await self.store.load_workflow_status(self.session_id)
        status = self.workflow_status
        if status is not None and status.workflow_stage == WorkflowStage.COMPLETED:
            await self.store.load_validation_results(self.session_id)
        return True

    def unmount(self) -> None:
        self.mounted = False
        self.store.stop_polling(self.session_id)

    async def refresh(self) -> bool:
        return await self.mount()

    async def run_analysis(self) -> bool:
        return await self.store.run_analysis(self.session_id)

    async def retry(self) -> bool:
        return await self.store.retry_analysis(self.session_id)

    async def delete_file(self, file_id: str) -> bool:
        return await self.store.delete_file(file_id)

    def toggle(self, result_id: str) -> None:
        if result_id in self.expanded:
            self.expanded.discard(result_id)
        else:
            self.expanded.add(result_id)

    @property
    def files(self) -> Tuple[UploadedFile, ...]:
        return self.store.state.files_for(self.session_id)

    @property
    def workflow_status(self) -> Optional[WorkflowStatus]:
        return self.store.state.workflow_status_for(self.session_id)

    @property
    def validation_results(self) -> Tuple[ValidationResult, ...]:
        return self.store.state.validation_results_for(self.session_id)

    @property
    def is_analyzing(self) -> bool:
        return self.store.state.is_analyzing_session(self.session_id)

    @property
    def can_analyze(self) -> bool:
        status = self.workflow_status
        stage = status.workflow_stage if status else WorkflowStage.UNKNOWN
        return bool(self.files) and not self.is_analyzing and stage in (WorkflowStage.UPLOADING, WorkflowStage.UNKNOWN)

    @property
    def failed_files(self) -> Tuple[str, ...]:
        """
        Names of files the server failed to process. The status summary is
        newer than the file list while polling, so both are consulted.
        """
        names = {f.original_filename for f in self.files if f.is_failed}
        status = self.workflow_status
        if status is not None:
            names.update(
                entry.filename
                for entry in status.processing_summary.files
                if entry.processing_status == ProcessingStatus.FAILED.value
            )
        return tuple(sorted(names))

    @property
    def can_retry(self) -> bool:
        if self.is_analyzing:
            return False
        status = self.workflow_status
        failed_stage = status is not None and status.workflow_stage == WorkflowStage.FAILED
        return failed_stage or bool(self.failed_files)

    @property
    def progress(self) -> int:
        """Share of files the server has finished with, 0-100"""
        status = self.workflow_status
        if status is None:
            return 0
        if status.workflow_stage == WorkflowStage.COMPLETED:
            return 100
        summary = status.processing_summary
        if summary.total_files == 0:
            return 0
        done = summary.by_status.get(ProcessingStatus.COMPLETED.value, 0) + summary.by_status.get(
            ProcessingStatus.FAILED.value, 0
        )
        return min(100, round(done * 100 / summary.total_files))
