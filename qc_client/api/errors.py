# qc_client/api/errors.py
from typing import Any, Optional

class RemoteError(Exception):
    """
    Normalized failure of a gateway operation.

    status_code is None when no HTTP response was received.
    detail holds the server-supplied message, if any; message always
    holds something displayable.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def __repr__(self):
        return f"<{type(self).__name__} status_code={self.status_code} message={self.message!r}>"

class TransportError(RemoteError):
    """Network unreachable, connection reset or timeout"""

class ServerError(RemoteError):
    """Non-2xx response, or a 2xx response with an unexpected body"""

class ValidationError(RemoteError):
    """Malformed local input, rejected before any request is sent"""

    def __init__(self, message: str):
        super().__init__(message, status_code=None, detail=message)

def extract_detail(payload: Any) -> Optional[str]:
    """
    Pull the server's error text out of a JSON error body.

    Handles FastAPI's {"detail": "..."} and {"detail": [{"msg": ...}]}
    shapes as well as {"message": ...} / {"error": ...} envelopes.
    """
    if not isinstance(payload, dict):
        return None

    detail = payload.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list) and detail:
        messages = [item.get("msg", str(item)) if isinstance(item, dict) else str(item) for item in detail]
        return "; ".join(messages)

    for key in ("message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None
