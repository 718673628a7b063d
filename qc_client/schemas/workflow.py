# qc_client/schemas/workflow.py
import logging
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from ..models.workflow import WorkflowStage
from .result import ValidationSummary

logger = logging.getLogger(__name__)

class FileStatusEntry(BaseModel):
    """Compact per-file line of the processing summary"""
    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    file_type: str
    processing_status: str
    has_extracted_data: bool = False
    processing_error: Optional[str] = None

class ProcessingSummary(BaseModel):
    """File counts by status and by type"""
    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_type: Dict[str, int] = Field(default_factory=dict)
    files: Tuple[FileStatusEntry, ...] = ()

class WorkflowStatus(BaseModel):
    """
    Point-in-time projection of a session's progress.

    workflow_stage is computed by the server from file and validation
    state; the client only displays it and uses it to drive polling.
    """
    model_config = ConfigDict(frozen=True)

    session_id: str
    session_status: str
    overall_result: Optional[str] = None
    workflow_stage: WorkflowStage
    created_at: datetime
    updated_at: datetime
    processing_summary: ProcessingSummary = Field(default_factory=ProcessingSummary)
    validation_summary: Optional[ValidationSummary] = None

    @field_validator("workflow_stage", mode="before")
    @classmethod
    def coerce_stage(cls, value: Any) -> Any:
        """Stages this client does not know about are reported as unknown"""
        if isinstance(value, WorkflowStage):
            return value
        try:
            return WorkflowStage(value)
        except ValueError:
            logger.warning(f"[Schema] Unrecognised workflow stage {value!r}, treating as unknown")
            return WorkflowStage.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self.workflow_stage.is_terminal
