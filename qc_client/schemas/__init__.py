# qc_client/schemas/__init__.py
from .session import Session, SessionListResponse
from .file import UploadedFile, FileUploadResponse
from .result import ValidationResult, ValidationSummary
from .workflow import WorkflowStatus, ProcessingSummary, FileStatusEntry

__all__ = [
    "Session",
    "SessionListResponse",
    "UploadedFile",
    "FileUploadResponse",
    "ValidationResult",
    "ValidationSummary",
    "WorkflowStatus",
    "ProcessingSummary",
    "FileStatusEntry",
]
