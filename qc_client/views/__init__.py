# qc_client/views/__init__.py
from .dashboard import DashboardView
from .session_details import SessionDetailsView
from .session_history import SessionHistoryView

__all__ = ["DashboardView", "SessionDetailsView", "SessionHistoryView"]
