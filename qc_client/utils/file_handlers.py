# qc_client/utils/file_handlers.py
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..config import settings
from ..models.file import FileType
from ..api.errors import ValidationError

@dataclass(frozen=True)
class LocalFile:
    """A document picked by the user but not uploaded yet"""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def file_type(self) -> Optional[FileType]:
        return detect_file_type(self.filename)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "LocalFile":
        path = Path(path)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=guess_content_type(path.name),
        )

def detect_file_type(filename: str) -> Optional[FileType]:
    """
    Map a filename to the document kind the server will detect.
    Returns None for extensions the service does not accept.
    """
    extension = Path(filename).suffix.lower()
    for file_type, extensions in settings.ALLOWED_EXTENSIONS.items():
        if extension in extensions:
            return FileType(file_type)
    return None

def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    if content_type:
        return content_type
    # mimetypes does not know the macro-enabled workbook on every platform
    if filename.lower().endswith(".xlsm"):
        return "application/vnd.ms-excel.sheet.macroEnabled.12"
    return "application/octet-stream"

def check_file(local_file: LocalFile) -> None:
    """
    Validate one file against the upload rules
    Raises ValidationError with a user-facing message
    """
    if detect_file_type(local_file.filename) is None:
        allowed = sorted({ext for exts in settings.ALLOWED_EXTENSIONS.values() for ext in exts})
        raise ValidationError(f"Unsupported file type: '{local_file.filename}'. Allowed: {allowed}")

    if local_file.size == 0:
        raise ValidationError(f"File '{local_file.filename}' is empty")

    if local_file.size > settings.MAX_UPLOAD_SIZE:
        max_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
        raise ValidationError(f"File '{local_file.filename}' is too large. Max size: {max_mb:.1f} MB")

def validate_selection(files: Sequence[LocalFile]) -> None:
    """Validate a whole upload batch before any request is made"""
    if not files:
        raise ValidationError("Select at least one file to upload")
    if len(files) > settings.MAX_FILES:
        raise ValidationError(f"Too many files selected. Maximum {settings.MAX_FILES} per upload")
    for local_file in files:
        check_file(local_file)

def partition_selection(files: Iterable[LocalFile]) -> Tuple[List[LocalFile], List[Tuple[LocalFile, str]]]:
    """
    Split picked files into accepted ones and rejected ones with a reason,
    the way a drop zone reports rejections without failing the whole pick.
    """
    accepted: List[LocalFile] = []
    rejected: List[Tuple[LocalFile, str]] = []
    for local_file in files:
        try:
            check_file(local_file)
        except ValidationError as e:
            rejected.append((local_file, e.message))
        else:
            accepted.append(local_file)
    return accepted, rejected
