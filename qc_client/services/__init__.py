# qc_client/services/__init__.py
from .notifier import Notifier, Notice
from .session_store import SessionStore
from .state import ErrorInfo, SessionState
from .workflow_poller import PollerState, WorkflowPoller

__all__ = [
    "Notifier",
    "Notice",
    "SessionStore",
    "ErrorInfo",
    "SessionState",
    "PollerState",
    "WorkflowPoller",
]
