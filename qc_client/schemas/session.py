# qc_client/schemas/session.py
import logging
from pydantic import BaseModel, ConfigDict, model_validator
from datetime import datetime
from typing import Any, Optional, Tuple
from ..models.session import SessionStatus, OverallResult, ACTIVE_SESSION_STATUSES
from .file import UploadedFile
from .result import ValidationResult

logger = logging.getLogger(__name__)

class Session(BaseModel):
    """
    Analysis session as returned by the server.
    Listing calls may embed the session's files and validation results.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    updated_at: datetime
    status: SessionStatus
    overall_result: Optional[OverallResult] = None
    files: Optional[Tuple[UploadedFile, ...]] = None
    validation_results: Optional[Tuple[ValidationResult, ...]] = None

    @model_validator(mode="before")
    @classmethod
    def drop_premature_verdict(cls, data: Any) -> Any:
        """A session still uploading or processing cannot carry a verdict"""
        if isinstance(data, dict) and data.get("overall_result"):
            status = data.get("status")
            if status in ACTIVE_SESSION_STATUSES:
                logger.warning(
                    f"[Schema] Session {data.get('id')} is {status} but reports "
                    f"overall_result={data['overall_result']}, ignoring verdict"
                )
                data = {**data, "overall_result": None}
        return data

class SessionListResponse(BaseModel):
    """Paged list of sessions"""
    model_config = ConfigDict(frozen=True)

    sessions: Tuple[Session, ...]
    total: int
    page: int
    per_page: int
