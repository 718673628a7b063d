# qc_client/models/__init__.py
from .session import SessionStatus, OverallResult
from .file import FileType, ProcessingStatus
from .result import CheckType, CheckStatus
from .workflow import WorkflowStage

__all__ = [
    "SessionStatus",
    "OverallResult",
    "FileType",
    "ProcessingStatus",
    "CheckType",
    "CheckStatus",
    "WorkflowStage",
]
