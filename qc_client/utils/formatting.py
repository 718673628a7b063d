# qc_client/utils/formatting.py
from datetime import datetime
from typing import Optional, Union

from ..models.file import FileType

FILE_TYPE_LABELS = {
    FileType.TRAVELER_PDF: "Traveler PDF",
    FileType.PRODUCT_IMAGE: "Product Image",
    FileType.BOM_EXCEL: "BOM Excel",
}

def format_file_size(size: int) -> str:
    """1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"

def format_date(value: Union[str, datetime]) -> str:
    if isinstance(value, str):
        # fromisoformat only accepts a trailing Z from Python 3.11
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)
    return value.strftime("%b %d, %Y, %I:%M %p")

def get_file_type_label(file_type: Optional[Union[str, FileType]]) -> str:
    try:
        return FILE_TYPE_LABELS[FileType(file_type)]
    except ValueError:
        return "Unknown"

def truncate_text(text: str, max_length: int = 50) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
