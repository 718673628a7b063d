# qc_client/api/files.py
from typing import TYPE_CHECKING, Sequence, Tuple

from ..schemas.file import UploadedFile, FileUploadResponse
from ..utils.file_handlers import LocalFile
from .client import require_id
from .errors import ValidationError

if TYPE_CHECKING:
    from .client import QCApiClient

class FileApi:
    """File operations - upload and manage manufacturing documents"""

    def __init__(self, client: "QCApiClient"):
        self._client = client

    async def upload(self, session_id: str, files: Sequence[LocalFile]) -> Tuple[FileUploadResponse, ...]:
        """
        Upload a batch of documents in one multipart request.

        Each file is sent as a repeated `files` form field; the server
        detects the document kind and queues it for processing.
        """
        require_id(session_id, "session id")
        if not files:
            raise ValidationError("Select at least one file to upload")

        form = [("files", (f.filename, f.content, f.content_type)) for f in files]
        response = await self._client.request("POST", f"/files/upload/{session_id}", files=form)
        return self._client.parse(response, Tuple[FileUploadResponse, ...])

    async def get_session_files(self, session_id: str) -> Tuple[UploadedFile, ...]:
        require_id(session_id, "session id")
        response = await self._client.request("GET", f"/files/session/{session_id}")
        return self._client.parse(response, Tuple[UploadedFile, ...])

    async def get_file(self, file_id: str) -> UploadedFile:
        require_id(file_id, "file id")
        response = await self._client.request("GET", f"/files/{file_id}")
        return self._client.parse(response, UploadedFile)

    async def delete_file(self, file_id: str) -> None:
        require_id(file_id, "file id")
        await self._client.request("DELETE", f"/files/{file_id}")
