# qc_client/services/state.py
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from ..schemas.session import Session
from ..schemas.file import UploadedFile
from ..schemas.result import ValidationResult
from ..schemas.workflow import WorkflowStatus

@dataclass(frozen=True)
class ErrorInfo:
    """Latest failure recorded by the store, for display"""
    operation: str
    message: str
    status_code: Optional[int] = None

@dataclass(frozen=True)
class SessionState:
    """
    One immutable snapshot of the store.

    A new instance is published on every change, so readers can compare
    snapshots by identity. Files, validation results and workflow status
    each carry their own session id; use the *_for helpers when a view
    only cares about one session.
    """
    # Current session
    current_session: Optional[Session] = None
    is_loading: bool = False
    error: Optional[ErrorInfo] = None

    # Sessions list (history)
    sessions: Tuple[Session, ...] = ()
    sessions_total: int = 0
    is_loading_sessions: bool = False

    # Files
    files: Tuple[UploadedFile, ...] = ()
    is_uploading_files: bool = False
    is_deleting: bool = False

    # Validation results
    validation_results: Tuple[ValidationResult, ...] = ()
    is_loading_results: bool = False

    # Workflow status
    workflow_status: Optional[WorkflowStatus] = None
    is_loading_status: bool = False
    analyzing_sessions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def current_session_id(self) -> Optional[str]:
        return self.current_session.id if self.current_session else None

    @property
    def is_analyzing(self) -> bool:
        return bool(self.analyzing_sessions)

    @property
    def has_failed_files(self) -> bool:
        return any(f.is_failed for f in self.files)

    def is_analyzing_session(self, session_id: str) -> bool:
        return session_id in self.analyzing_sessions

    def files_for(self, session_id: str) -> Tuple[UploadedFile, ...]:
        return tuple(f for f in self.files if f.session_id == session_id)

    def validation_results_for(self, session_id: str) -> Tuple[ValidationResult, ...]:
        return tuple(r for r in self.validation_results if r.session_id == session_id)

    def workflow_status_for(self, session_id: str) -> Optional[WorkflowStatus]:
        if self.workflow_status and self.workflow_status.session_id == session_id:
            return self.workflow_status
        return None
