# qc_client/api/__init__.py
from .client import QCApiClient
from .errors import RemoteError, TransportError, ServerError, ValidationError

__all__ = [
    "QCApiClient",
    "RemoteError",
    "TransportError",
    "ServerError",
    "ValidationError",
]
