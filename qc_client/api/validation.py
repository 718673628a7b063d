# qc_client/api/validation.py
from typing import TYPE_CHECKING, Any, Dict, Tuple

from ..schemas.result import ValidationResult, ValidationSummary
from .client import require_id

if TYPE_CHECKING:
    from .client import QCApiClient

class ValidationApi:
    """Validation results - retrieve cross-check outcomes"""

    def __init__(self, client: "QCApiClient"):
        self._client = client

    async def validate(self, session_id: str) -> Dict[str, Any]:
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/validation/validate/{session_id}")
        return self._client.ack(response)

    async def validate_now(self, session_id: str) -> Dict[str, Any]:
        require_id(session_id, "session id")
        response = await self._client.request("POST", f"/validation/validate-now/{session_id}")
        return self._client.ack(response)

    async def get_results(self, session_id: str) -> Tuple[ValidationResult, ...]:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/validation/results/{session_id}")
        return self._client.parse(response, Tuple[ValidationResult, ...])

    async def get_summary(self, session_id: str) -> ValidationSummary:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/validation/summary/{session_id}")
        return self._client.parse(response, ValidationSummary)

    async def clear_results(self, session_id: str) -> None:
        require_id(session_id, "session id")
        await self._client.request("DELETE", f"/validation/results/{session_id}")
