# qc_client/models/workflow.py
import enum

class WorkflowStage(str, enum.Enum):
    """Coarse, server-computed phase of a session"""
    UPLOADING = "uploading"
    PROCESSING_FILES = "processing_files"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowStage.COMPLETED, WorkflowStage.FAILED)
