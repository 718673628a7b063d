"""
Logging configuration for the Manufacturing QC client

Everything goes to the "qc_client" logger tree, never the root logger, so an
application embedding the client keeps its own logging setup:
- client.log: gateway round trips, store operations, poller transitions
- error.log: failed requests and operations only
- console (stderr): warnings and errors
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from .config import settings

FILE_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] - %(message)s"
CONSOLE_FORMAT = "[%(asctime)s] %(levelname)-8s - %(message)s"

def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler

def setup_logging(log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Attach the client's handlers to the "qc_client" logger.

    Safe to call again (e.g. with another log_dir): previous handlers are
    closed and replaced. Log files rotate at LOG_MAX_BYTES, keeping
    LOG_BACKUP_COUNT old files.
    """
    if log_dir is None:
        log_dir = settings.LOG_DIR or Path.cwd() / "logs"
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    client_logger = logging.getLogger("qc_client")
    client_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    client_logger.propagate = False

    for handler in list(client_logger.handlers):
        client_logger.removeHandler(handler)
        handler.close()

    file_formatter = logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    client_log = log_dir / "client.log"
    error_log = log_dir / "error.log"
    client_logger.addHandler(_file_handler(client_log, logging.INFO, file_formatter))
    client_logger.addHandler(_file_handler(error_log, logging.ERROR, file_formatter))

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    client_logger.addHandler(console)

    # The gateway logs each round trip itself
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} logging to {log_dir}")
    logger.info(f"Client log: {client_log.name}, error log: {error_log.name}, level {settings.LOG_LEVEL}")
    return logger
