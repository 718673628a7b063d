# qc_client/models/session.py
import enum

class SessionStatus(str, enum.Enum):
    """Session lifecycle status, owned by the server"""
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

class OverallResult(str, enum.Enum):
    """Overall validation verdict"""
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"

# A verdict only exists once the session has left these states
ACTIVE_SESSION_STATUSES = frozenset({SessionStatus.UPLOADING, SessionStatus.PROCESSING})
