# qc_client/__init__.py
from .api import QCApiClient, RemoteError, TransportError, ServerError, ValidationError
from .services import SessionStore, SessionState, WorkflowPoller, PollerState, Notifier
from .main import create_store, run_quality_check

__version__ = "1.0.0"

__all__ = [
    "QCApiClient",
    "RemoteError",
    "TransportError",
    "ServerError",
    "ValidationError",
    "SessionStore",
    "SessionState",
    "WorkflowPoller",
    "PollerState",
    "Notifier",
    "create_store",
    "run_quality_check",
]
