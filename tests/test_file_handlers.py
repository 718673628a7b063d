from datetime import datetime

import pytest

from qc_client.api.errors import ValidationError
from qc_client.config import settings
from qc_client.models.file import FileType
from qc_client.utils.file_handlers import (
    LocalFile,
    detect_file_type,
    guess_content_type,
    partition_selection,
    validate_selection,
)
from qc_client.utils.formatting import format_date, format_file_size, get_file_type_label, truncate_text


def test_detect_file_type_by_extension():
    assert detect_file_type("Traveler.PDF") == FileType.TRAVELER_PDF
    assert detect_file_type("photo.jpeg") == FileType.PRODUCT_IMAGE
    assert detect_file_type("As_Built.xlsm") == FileType.BOM_EXCEL
    assert detect_file_type("notes.txt") is None


def test_guess_content_type():
    assert guess_content_type("a.pdf") == "application/pdf"
    assert guess_content_type("a.xlsm") in (
        "application/vnd.ms-excel.sheet.macroEnabled.12",
        "application/vnd.ms-excel.sheet.macroenabled.12",
    )
    assert guess_content_type("a.unknownext") == "application/octet-stream"


def test_local_file_from_path(tmp_path):
    path = tmp_path / "traveler.pdf"
    path.write_bytes(b"%PDF-1.4")

    local_file = LocalFile.from_path(path)

    assert local_file.filename == "traveler.pdf"
    assert local_file.size == 8
    assert local_file.content_type == "application/pdf"
    assert local_file.file_type == FileType.TRAVELER_PDF


def test_empty_selection_is_rejected():
    with pytest.raises(ValidationError, match="at least one file"):
        validate_selection([])


def test_too_many_files_rejected():
    files = [LocalFile(f"bom_{i}.xlsx", b"x") for i in range(settings.MAX_FILES + 1)]

    with pytest.raises(ValidationError, match="Too many files"):
        validate_selection(files)


def test_oversized_file_rejected(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 4)

    with pytest.raises(ValidationError, match="too large"):
        validate_selection([LocalFile("traveler.pdf", b"12345")])


def test_partition_keeps_good_files():
    good = LocalFile("traveler.pdf", b"pdf")
    bad = LocalFile("notes.txt", b"text")
    empty = LocalFile("photo.png", b"")

    accepted, rejected = partition_selection([good, bad, empty])

    assert accepted == [good]
    assert [f for f, _ in rejected] == [bad, empty]
    assert "Unsupported file type" in rejected[0][1]


def test_formatting_helpers():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(512) == "512 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5 MB"
    assert get_file_type_label("BOM_EXCEL") == "BOM Excel"
    assert get_file_type_label("spreadsheet") == "Unknown"
    assert get_file_type_label(None) == "Unknown"
    assert truncate_text("a" * 60) == "a" * 50 + "..."
    assert truncate_text("short") == "short"
    assert format_date(datetime(2025, 9, 29, 16, 31)) == "Sep 29, 2025, 04:31 PM"


def test_format_date_accepts_utc_suffix():
    assert format_date("2025-09-29T16:31:00Z") == "Sep 29, 2025, 04:31 PM"
    assert format_date("2025-09-29T16:31:00.123456Z") == "Sep 29, 2025, 04:31 PM"
    assert format_date("2025-09-29T16:31:00") == "Sep 29, 2025, 04:31 PM"
