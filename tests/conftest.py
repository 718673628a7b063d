import asyncio

import httpx
import pytest

from qc_client.api.client import QCApiClient
from qc_client.schemas.workflow import WorkflowStatus
from qc_client.services.notifier import Notifier
from qc_client.services.session_store import SessionStore
from qc_client.utils.file_handlers import LocalFile

from tests.fake_server import FakeQCService

# Fast cadence so polling tests finish quickly
POLL_INTERVAL = 0.02


@pytest.fixture
def service():
    return FakeQCService()


@pytest.fixture
async def api(service):
    transport = httpx.ASGITransport(app=service.app)
    client = QCApiClient(base_url="http://test/api/v1", transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
def notices():
    return []


@pytest.fixture
async def store(api, notices):
    notifier = Notifier()
    notifier.register_callback(notices.append)
    store = SessionStore(api, notifier=notifier, poll_interval=POLL_INTERVAL, poll_initial_delay=POLL_INTERVAL)
    yield store
    await store.aclose()


@pytest.fixture
def documents():
    """One of each document kind"""
    return [
        LocalFile("DRW-1608-03_Traveler.pdf", b"%PDF-1.4 traveler", "application/pdf"),
        LocalFile("Hardware_Photo_INF1619.jpg", b"\xff\xd8\xff image", "image/jpeg"),
        LocalFile(
            "As_Built_82334.xlsx",
            b"PK\x03\x04 workbook",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ),
    ]


async def wait_until(predicate, timeout: float = 2.0):
    """Yield to the loop until predicate() holds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


def make_status(session_id: str, stage: str) -> WorkflowStatus:
    return WorkflowStatus.model_validate({
        "session_id": session_id,
        "session_status": "PROCESSING",
        "workflow_stage": stage,
        "created_at": "2025-09-29T16:31:00",
        "updated_at": "2025-09-29T16:31:00",
    })
