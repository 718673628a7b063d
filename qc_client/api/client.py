# qc_client/api/client.py
import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from ..config import settings
from .errors import RemoteError, ServerError, TransportError, ValidationError, extract_detail

logger = logging.getLogger(__name__)

T = TypeVar("T")

def require_id(value: Optional[str], name: str = "id") -> str:
    """Shape check for path ids; business validation is the server's job"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"A {name} is required")
    return value

class QCApiClient:
    """
    Typed gateway over the QC service's HTTP API.

    One method call = one request/response round trip, no retries.
    Every failure is raised as a RemoteError subclass.

    Usage:
        async with QCApiClient() as api:
            session = await api.sessions.create()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=base_url or settings.base_url,
                timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
                transport=transport,
            )
        self._http = http_client

        # Resource groups
        from .sessions import SessionApi
        from .files import FileApi
        from .workflow import WorkflowApi
        from .validation import ValidationApi
        from .processing import ProcessingApi

        self.sessions = SessionApi(self)
        self.files = FileApi(self)
        self.workflow = WorkflowApi(self)
        self.validation = ValidationApi(self)
        self.processing = ProcessingApi(self)

    async def __aenter__(self) -> "QCApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
    ) -> httpx.Response:
        """Send one request and normalize every failure into a RemoteError"""
        logger.info(f"[Gateway] -> {method} {path}")
        if self._http.is_closed:
            logger.error(f"[Gateway] {method} {path} on a closed client")
            raise TransportError("Client is closed")
        try:
            response = await self._http.request(method, path, params=params, json=json, files=files)
        except httpx.TimeoutException as e:
            logger.error(f"[Gateway] Timeout on {method} {path}: {e}")
            raise TransportError("Request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"[Gateway] Transport error on {method} {path}: {e}")
            raise TransportError(f"Network error: {e}") from e

        if response.is_success:
            logger.info(f"[Gateway] <- {response.status_code} {method} {path}")
            return response

        try:
            payload = response.json()
        except ValueError:
            payload = None
        detail = extract_detail(payload)
        message = detail or f"Request failed with status code {response.status_code}"
        logger.error(f"[Gateway] <- {response.status_code} {method} {path}: {message}")
        raise ServerError(message, status_code=response.status_code, detail=detail)

    def parse(self, response: httpx.Response, schema: Type[T]) -> T:
        """Validate a successful response body against a schema"""
        try:
            return TypeAdapter(schema).validate_json(response.content)
        except SchemaError as e:
            logger.error(f"[Gateway] Unexpected response body from {response.request.url.path}: {e}")
            raise ServerError("Unexpected response from server", status_code=response.status_code) from e

    def ack(self, response: httpx.Response) -> Dict[str, Any]:
        """Loosely-typed acknowledgement payload of a trigger endpoint"""
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise ServerError("Unexpected response from server", status_code=response.status_code) from e
        return payload if isinstance(payload, dict) else {"data": payload}

__all__ = ["QCApiClient", "RemoteError", "require_id"]
