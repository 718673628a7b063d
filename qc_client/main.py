# qc_client/main.py
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import httpx

from .api.client import QCApiClient
from .config import settings
from .logging_config import setup_logging
from .models.workflow import WorkflowStage
from .services.notifier import Notifier
from .services.session_store import SessionStore
from .services.state import SessionState
from .utils.file_handlers import LocalFile

logger = logging.getLogger(__name__)

def create_store(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    configure_logging: bool = True,
    poll_interval: Optional[float] = None,
    poll_initial_delay: Optional[float] = None,
) -> SessionStore:
    """
    Build a ready-to-use store: logging, HTTP gateway and notifier.
    Call `await store.aclose()` and `await store.api.aclose()` when done.
    """
    if configure_logging:
        setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    api = QCApiClient(base_url=base_url, transport=transport)
    logger.info(f"Remote service: {base_url or settings.base_url}")
    return SessionStore(
        api,
        notifier=Notifier(),
        poll_interval=poll_interval,
        poll_initial_delay=poll_initial_delay,
    )

async def run_quality_check(
    store: SessionStore,
    documents: Sequence[Union[str, Path, LocalFile]],
) -> SessionState:
    """
    Whole workflow in one call: new session, upload, analyze, wait for a
    terminal stage. Returns the final snapshot; check `state.error` for failures.
    """
    files = [d if isinstance(d, LocalFile) else LocalFile.from_path(d) for d in documents]

    session = await store.create_session()
    if session is None:
        return store.state
    if not await store.upload_files(session.id, files):
        return store.state
    if not await store.run_analysis(session.id):
        return store.state

    poller = store.poller_for(session.id)
    if poller is not None:
        await poller.wait()

    status = store.state.workflow_status_for(session.id)
    stage = status.workflow_stage if status else WorkflowStage.UNKNOWN
    logger.info(f"Quality check for session {session.id} finished: stage={stage.value}")
    return store.state
