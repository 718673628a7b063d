# qc_client/schemas/file.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, Dict, Any
from ..models.file import FileType, ProcessingStatus

class UploadedFile(BaseModel):
    """
    A document stored on the server for a session.
    processing_status is driven by the server; the client only observes it.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    filename: str
    original_filename: str
    file_type: FileType
    file_size: int
    mime_type: str
    processing_status: ProcessingStatus
    processing_error: Optional[str] = None  # Present when FAILED
    extracted_data: Optional[Dict[str, Any]] = None  # Present when COMPLETED
    created_at: datetime
    updated_at: datetime

    @property
    def is_failed(self) -> bool:
        return self.processing_status == ProcessingStatus.FAILED

class FileUploadResponse(BaseModel):
    """Per-file acknowledgement returned by the upload endpoint"""
    model_config = ConfigDict(frozen=True)

    file_id: str
    filename: str
    file_type: str
    status: str
    message: str
