# qc_client/schemas/result.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, Tuple
from ..models.result import CheckType, CheckStatus

class ValidationResult(BaseModel):
    """Single cross-check outcome produced by the server"""
    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    check_type: CheckType
    status: CheckStatus
    description: str
    source_files: Optional[Tuple[str, ...]] = None
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime

class ValidationSummary(BaseModel):
    """Pass/warning/fail counts for a session"""
    model_config = ConfigDict(frozen=True)

    total_checks: int
    passed: int
    warnings: int
    failed: int
    overall_result: Optional[str] = None
