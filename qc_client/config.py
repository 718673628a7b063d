# qc_client/config.py
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional

class Settings(BaseSettings):
    """Client configuration using Pydantic settings"""

    # App Info
    APP_NAME: str = "Manufacturing QC Client"
    APP_VERSION: str = "1.0.0"

    # Remote service
    API_URL: str = "http://localhost:8000"
    API_PREFIX: str = "/api/v1"
    REQUEST_TIMEOUT: float = 30.0  # seconds, applies to every request

    # Workflow polling
    POLL_INTERVAL: float = 2.0
    POLL_INITIAL_DELAY: float = 1.0

    # Session history
    SESSION_PAGE_SIZE: int = 100

    # File selection (checked locally before upload)
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50 MB
    MAX_FILES: int = 10
    ALLOWED_EXTENSIONS: Dict[str, List[str]] = {
        "TRAVELER_PDF": [".pdf"],
        "PRODUCT_IMAGE": [".jpg", ".jpeg", ".png"],
        "BOM_EXCEL": [".xlsx", ".xlsm", ".xls"],
    }

    # Logging
    LOG_DIR: Optional[str] = None  # Defaults to ./logs in the working directory
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10 MB per file
    LOG_BACKUP_COUNT: int = 5

    # Notices kept for late subscribers
    NOTICE_HISTORY: int = 50

    model_config = {"env_file": ".env", "case_sensitive": True}

    @property
    def base_url(self) -> str:
        return self.API_URL.rstrip("/") + self.API_PREFIX

# Singleton instance
settings = Settings()
