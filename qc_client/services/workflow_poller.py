# qc_client/services/workflow_poller.py
import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

from ..api.errors import RemoteError
from ..config import settings
from ..models.workflow import WorkflowStage
from ..schemas.workflow import WorkflowStatus

logger = logging.getLogger(__name__)

class PollerState(str, enum.Enum):
    """Lifecycle of one polling loop"""
    IDLE = "idle"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"  # a status fetch failed
    CANCELLED = "cancelled"  # torn down before a terminal stage

TERMINAL_POLLER_STATES = frozenset({
    PollerState.COMPLETED,
    PollerState.FAILED,
    PollerState.ERROR,
    PollerState.CANCELLED,
})

StatusFetcher = Callable[[str], Awaitable[WorkflowStatus]]
FinishedCallback = Callable[["WorkflowPoller"], Awaitable[None]]


class WorkflowPoller:
    """
    Polls the workflow status of one session until a terminal stage.

    idle -> polling -> completed | failed
                    -> error      (status fetch raised)
                    -> cancelled  (cancel() called)

    The loop runs in a single asyncio task owned by this object. fetch_status
    is expected to merge the status into the store before returning it;
    on_finished is awaited once when the loop ends on its own (not on cancel).
    """

    def __init__(
        self,
        session_id: str,
        fetch_status: StatusFetcher,
        on_finished: FinishedCallback,
        interval: Optional[float] = None,
        initial_delay: Optional[float] = None,
    ):
        self.session_id = session_id
        self.interval = settings.POLL_INTERVAL if interval is None else interval
        self.initial_delay = settings.POLL_INITIAL_DELAY if initial_delay is None else initial_delay
        self._fetch_status = fetch_status
        self._on_finished = on_finished
        self._task: Optional[asyncio.Task] = None

        self.state = PollerState.IDLE
        self.ticks = 0
        self.last_status: Optional[WorkflowStatus] = None
        self.error: Optional[RemoteError] = None

    def __repr__(self):
        return f"<WorkflowPoller {self.session_id[:8]}... state={self.state.value} ticks={self.ticks}>"

    @property
    def is_active(self) -> bool:
        # A task that died without a transition is not polling
        return self.state == PollerState.POLLING and (self._task is None or not self._task.done())

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_POLLER_STATES

    def start(self) -> "WorkflowPoller":
        """Schedule the loop on the running event loop"""
        if self.state != PollerState.IDLE:
            raise RuntimeError(f"Poller for session {self.session_id} already started ({self.state.value})")
        self._transition(PollerState.POLLING)
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"workflow-poller-{self.session_id}"
        )
        return self

    def cancel(self) -> bool:
        """
        Stop ticking. Safe to call at any time and more than once.
        Returns True if a running loop was stopped.
        """
        if self.is_finished:
            return False
        self._transition(PollerState.CANCELLED)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    async def wait(self) -> PollerState:
        """Wait for the loop to end, however it ends"""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state

    async def _run(self):
        try:
            await asyncio.sleep(self.initial_delay)
            while self.is_active:
                self.ticks += 1
                try:
                    status = await self._fetch_status(self.session_id)
                except RemoteError as e:
                    logger.error(f"[Poller] {self.session_id[:8]}... status fetch failed: {e.message}")
                    self.error = e
                    self._transition(PollerState.ERROR)
                    break
                except Exception as e:
                    logger.exception(f"[Poller] {self.session_id[:8]}... unexpected error while polling: {e}")
                    self.error = RemoteError(f"Status polling stopped: {e}")
                    self._transition(PollerState.ERROR)
                    break

                if not self.is_active:
                    # Cancelled while the request was in flight
                    return

                self.last_status = status
                stage = status.workflow_stage
                logger.debug(f"[Poller] {self.session_id[:8]}... tick {self.ticks} | stage={stage.value}")

                if stage == WorkflowStage.COMPLETED:
                    self._transition(PollerState.COMPLETED)
                    break
                if stage == WorkflowStage.FAILED:
                    self._transition(PollerState.FAILED)
                    break

                # processing_files, validating, and uploading/unknown while the
                # server is still assigning a stage
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            self._transition(PollerState.CANCELLED)
            return

        await self._on_finished(self)

    def _transition(self, new_state: PollerState):
        if new_state == self.state:
            return
        logger.info(f"[Poller] {self.session_id[:8]}... {self.state.value} -> {new_state.value}")
        self.state = new_state
