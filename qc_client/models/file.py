# qc_client/models/file.py
import enum

class FileType(str, enum.Enum):
    """Kind of document detected by the server"""
    TRAVELER_PDF = "TRAVELER_PDF"
    PRODUCT_IMAGE = "PRODUCT_IMAGE"
    BOM_EXCEL = "BOM_EXCEL"

class ProcessingStatus(str, enum.Enum):
    """File processing status"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
