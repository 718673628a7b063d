# qc_client/services/session_store.py
"""
Session State Store

Owns the client's view of the current QC session and keeps it in step with
the server while analysis runs out of band. All state changes go through the
operations below; readers get immutable SessionState snapshots.

Responses are merged in issue order per (session, resource): every fetch takes
a sequence token when it is sent, and a response older than one already
applied is dropped. clear_session() starts a new epoch, which drops every
response issued before it.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..api.client import QCApiClient
from ..api.errors import RemoteError, ValidationError
from ..config import settings
from ..models.file import ProcessingStatus
from ..schemas.session import Session
from ..schemas.result import ValidationSummary
from ..schemas.workflow import WorkflowStatus
from ..utils.file_handlers import LocalFile, validate_selection
from .notifier import Notifier
from .state import ErrorInfo, SessionState
from .workflow_poller import PollerState, WorkflowPoller

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState], None]
Token = Tuple[int, int]

# Resource names used for sequencing
SESSION = "session"
FILES = "files"
WORKFLOW = "workflow"
VALIDATION = "validation"
SESSION_LIST = "sessions"


class _Operation:
    """
    Collects the changes of one store operation so they are published in a
    single transition together with the in-flight flag going back to False.
    """

    def __init__(self, store: "SessionStore", flag: Optional[str]):
        self.store = store
        self.flag = flag
        self.changes: Dict[str, Any] = {}
        self.notices: List[Tuple[str, str]] = []

    def __enter__(self) -> "_Operation":
        if self.flag:
            self.store._inflight[self.flag] += 1
            self.store._publish(**{self.flag: True})
        return self

    def __exit__(self, *exc_info) -> None:
        if self.flag:
            self.store._inflight[self.flag] -= 1
            self.changes[self.flag] = self.store._inflight[self.flag] > 0
        self.store._publish(**self.changes)
        for level, message in self.notices:
            getattr(self.store.notifier, level)(message)

    def succeed(self, notice: Optional[str] = None, **changes) -> None:
        self.changes.update(changes)
        self.changes["error"] = None
        if notice:
            self.notices.append(("success", notice))

    def fail(self, operation: str, error: RemoteError, fallback: str, notify: bool = True) -> None:
        info = self.store._error_info(operation, error, fallback)
        self.changes["error"] = info
        if notify:
            self.notices.append(("error", info.message))


class SessionStore:
    """
    Single writer of the client's session state.

    Every public operation is a coroutine that resolves to a value (a result,
    None, or a success flag) and records failures in state.error instead of
    raising. Subscribers are called synchronously with each new snapshot.
    """

    def __init__(
        self,
        api: QCApiClient,
        notifier: Optional[Notifier] = None,
        poll_interval: Optional[float] = None,
        poll_initial_delay: Optional[float] = None,
    ):
        self.api = api
        self.notifier = notifier or Notifier()
        self.poll_interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
        self.poll_initial_delay = settings.POLL_INITIAL_DELAY if poll_initial_delay is None else poll_initial_delay

        self._state = SessionState()
        self._subscribers: Set[StateCallback] = set()
        self._inflight: Counter = Counter()

        # Sequencing
        self._epoch = 0
        self._issued: Dict[Tuple[str, str], int] = {}
        self._applied: Dict[Tuple[str, str], Token] = {}

        # At most one poller per session id
        self._pollers: Dict[str, WorkflowPoller] = {}
        self._starting: Set[str] = set()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """Register a snapshot listener; returns a function that unregisters it"""
        self._subscribers.add(callback)

        def unsubscribe():
            self._subscribers.discard(callback)

        return unsubscribe

    def _publish(self, **changes) -> None:
        if not changes:
            return
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception as e:
                logger.error(f"[Store] Error in state subscriber: {e}")

    def _operation(self, flag: Optional[str] = None) -> _Operation:
        return _Operation(self, flag)

    def _error_info(self, operation: str, error: RemoteError, fallback: str) -> ErrorInfo:
        message = error.detail or f"{fallback} ({error.message})"
        logger.error(f"[Store] {operation} failed: {error.message}")
        return ErrorInfo(operation=operation, message=message, status_code=error.status_code)

    def set_error(self, message: Optional[str], operation: str = "manual") -> None:
        self._publish(error=ErrorInfo(operation, message) if message else None)

    def clear_error(self) -> None:
        self._publish(error=None)

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------

    def _issue(self, resource: str, key: str) -> Token:
        seq = self._issued.get((resource, key), 0) + 1
        self._issued[(resource, key)] = seq
        return (self._epoch, seq)

    def _accept(self, resource: str, key: str, token: Token, scoped: bool = True) -> bool:
        """
        True if a response issued with `token` may be merged. Marks it applied.
        Unscoped resources (the session list) survive clear_session().
        """
        epoch, seq = token
        if scoped and epoch != self._epoch:
            logger.debug(f"[Store] Dropping {resource} response for {key}: issued before clear")
            return False
        applied = self._applied.get((resource, key))
        if applied is not None and applied[1] >= seq:
            logger.debug(f"[Store] Dropping stale {resource} response for {key} (seq {seq} <= {applied[1]})")
            return False
        self._applied[(resource, key)] = token
        return True

    def _in_scope(self, session_id: str) -> bool:
        """Session-scoped data is only merged for the current session (or when there is none)"""
        current = self._state.current_session
        return current is None or current.id == session_id

    def _with_analyzing(self, session_id: str, analyzing: bool) -> Dict[str, Any]:
        sessions = self._state.analyzing_sessions
        return {"analyzing_sessions": sessions | {session_id} if analyzing else sessions - {session_id}}

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(self) -> Optional[Session]:
        """Create a new session and make it current; files/results start empty"""
        with self._operation("is_loading") as op:
            epoch = self._epoch
            try:
                session = await self.api.sessions.create()
            except RemoteError as e:
                op.fail("create_session", e, "Failed to create session")
                return None

            if epoch != self._epoch:
                logger.info(f"[Store] Session {session.id} created after clear, not adopting it")
                return session

            logger.info(f"[Store] Created session {session.id}")
            op.succeed(
                "New session created successfully",
                current_session=session,
                files=(),
                validation_results=(),
                workflow_status=None,
            )
            return session

    async def load_session(self, session_id: str) -> bool:
        """
        Fetch a session and its files, merged in a single transition.
        If either request fails nothing is merged.
        """
        with self._operation("is_loading") as op:
            session_token = self._issue(SESSION, session_id)
            files_token = self._issue(FILES, session_id)
            try:
                session = await self.api.sessions.get(session_id)
                files = await self.api.files.get_session_files(session_id)
            except RemoteError as e:
                op.fail("load_session", e, "Failed to load session")
                return False

            changes: Dict[str, Any] = {}
            session_fresh = self._accept(SESSION, session_id, session_token)
            if session_fresh:
                changes["current_session"] = session
            if self._accept(FILES, session_id, files_token) and (session_fresh or self._in_scope(session_id)):
                changes["files"] = files
            op.succeed(**changes)
            return True

    async def load_sessions(self, skip: int = 0, limit: Optional[int] = None) -> bool:
        """Refresh the session history list"""
        with self._operation("is_loading_sessions") as op:
            token = self._issue(SESSION_LIST, "*")
            try:
                response = await self.api.sessions.list(skip=skip, limit=limit or settings.SESSION_PAGE_SIZE)
            except RemoteError as e:
                op.fail("load_sessions", e, "Failed to load sessions")
                return False

            if self._accept(SESSION_LIST, "*", token, scoped=False):
                op.succeed(sessions=response.sessions, sessions_total=response.total)
            else:
                op.succeed()
            return True

    async def delete_session(self, session_id: str) -> bool:
        with self._operation("is_deleting") as op:
            try:
                await self.api.sessions.delete(session_id)
            except RemoteError as e:
                op.fail("delete_session", e, "Failed to delete session")
                return False

            remaining = tuple(s for s in self._state.sessions if s.id != session_id)
            changes: Dict[str, Any] = {
                "sessions": remaining,
                "sessions_total": max(self._state.sessions_total - (len(self._state.sessions) - len(remaining)), 0),
            }
            self.stop_polling(session_id)
            if self._state.current_session_id == session_id:
                changes.update(self._cleared_session_changes())
            op.succeed("Session deleted", **changes)
            return True

    def clear_session(self) -> None:
        """Forget the current session; pending responses for it are dropped"""
        for poller in list(self._pollers.values()):
            poller.cancel()
        self._pollers.clear()
        self._starting.clear()
        self._epoch += 1
        logger.info(f"[Store] Session cleared (epoch {self._epoch})")
        self._publish(**self._cleared_session_changes(), error=None)

    def _cleared_session_changes(self) -> Dict[str, Any]:
        return {
            "current_session": None,
            "files": (),
            "validation_results": (),
            "workflow_status": None,
            "analyzing_sessions": frozenset(),
        }

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload_files(self, session_id: str, files: Sequence[LocalFile]) -> bool:
        """
        Upload a batch, then re-read the session's file list from the server.
        Returns True on success so callers can chain navigation.
        """
        with self._operation("is_uploading_files") as op:
            try:
                validate_selection(files)
                results = await self.api.files.upload(session_id, files)
                token = self._issue(FILES, session_id)
                updated = await self.api.files.get_session_files(session_id)
            except RemoteError as e:
                op.fail("upload_files", e, "Failed to upload files")
                return False

            changes: Dict[str, Any] = {}
            if self._accept(FILES, session_id, token) and self._in_scope(session_id):
                changes["files"] = updated
            op.succeed(f"Successfully uploaded {len(results)} file(s)", **changes)
            return True

    async def delete_file(self, file_id: str) -> bool:
        """
        Delete a file, then re-read the authoritative file list.

        A file the server is still processing (or any file of a session under
        analysis) is not deleted; the request is rejected locally.
        """
        target = next((f for f in self._state.files if f.id == file_id), None)
        if target is not None and (
            target.processing_status == ProcessingStatus.PROCESSING
            or self._state.is_analyzing_session(target.session_id)
        ):
            with self._operation() as op:
                op.fail(
                    "delete_file",
                    ValidationError(f"Cannot delete '{target.original_filename}' while it is being processed"),
                    "Failed to delete file",
                )
            return False

        with self._operation("is_deleting") as op:
            try:
                await self.api.files.delete_file(file_id)
            except RemoteError as e:
                op.fail("delete_file", e, "Failed to delete file")
                return False

            refreshed = None
            refresh_error = None
            if target is not None:
                token = self._issue(FILES, target.session_id)
                try:
                    refreshed = await self.api.files.get_session_files(target.session_id)
                except RemoteError as e:
                    refresh_error = e
                else:
                    if not (self._accept(FILES, target.session_id, token) and self._in_scope(target.session_id)):
                        refreshed = None

            files = refreshed if refreshed is not None else tuple(f for f in self._state.files if f.id != file_id)
            op.succeed("File deleted successfully", files=files)
            if refresh_error is not None:
                # The delete went through; keep the local removal and report the refresh
                op.fail("delete_file", refresh_error, "File deleted but the file list could not be refreshed")
            return True

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    async def run_analysis(self, session_id: str) -> bool:
        """
        Start the server-side workflow and poll it until a terminal stage.
        A session already being polled is left alone.
        """
        if session_id in self._starting or self._active_poller(session_id) is not None:
            logger.info(f"[Store] Analysis already running for {session_id}, not starting another loop")
            return True

        epoch = self._epoch
        self._starting.add(session_id)
        self._publish(**self._with_analyzing(session_id, True))
        try:
            await self.api.workflow.analyze(session_id)
        except RemoteError as e:
            with self._operation() as op:
                op.changes.update(self._with_analyzing(session_id, False))
                op.fail("run_analysis", e, "Failed to start analysis")
            return False
        except asyncio.CancelledError:
            self._publish(**self._with_analyzing(session_id, False))
            raise
        finally:
            self._starting.discard(session_id)

        with self._operation() as op:
            op.succeed("Analysis started successfully")
        if epoch != self._epoch:
            logger.info(f"[Store] Session {session_id} was cleared while starting analysis, not polling")
            return True
        self._start_polling(session_id, self.poll_initial_delay)
        return True

    async def retry_analysis(self, session_id: str) -> bool:
        """
        Ask the server to retry, refresh the status once, then resume polling
        on the next interval.
        """
        epoch = self._epoch
        self._publish(**self._with_analyzing(session_id, True))
        try:
            await self.api.workflow.retry(session_id)
            with self._operation() as op:
                await self._fetch_status(session_id, op)
                op.succeed("Retrying analysis...")
        except RemoteError as e:
            with self._operation() as op:
                if self._active_poller(session_id) is None:
                    op.changes.update(self._with_analyzing(session_id, False))
                op.fail("retry_analysis", e, "Failed to retry analysis")
            return False
        except asyncio.CancelledError:
            if self._active_poller(session_id) is None:
                self._publish(**self._with_analyzing(session_id, False))
            raise

        if epoch != self._epoch:
            return True
        self._start_polling(session_id, self.poll_interval)
        return True

    async def analyze_now(self, session_id: str) -> bool:
        """Run the whole workflow synchronously on the server, then refresh everything"""
        self._publish(**self._with_analyzing(session_id, True))
        try:
            await self.api.workflow.analyze_now(session_id)
        except RemoteError as e:
            with self._operation() as op:
                op.changes.update(self._with_analyzing(session_id, False))
                op.fail("analyze_now", e, "Failed to run analysis")
            return False
        finally:
            if self._active_poller(session_id) is None:
                self._publish(**self._with_analyzing(session_id, False))

        with self._operation() as op:
            op.succeed("Analysis complete")
        status_ok = await self.load_workflow_status(session_id)
        files_ok = await self._refresh_files(session_id)
        results_ok = await self.load_validation_results(session_id)
        return status_ok and files_ok and results_ok

    async def load_workflow_status(self, session_id: str) -> bool:
        with self._operation("is_loading_status") as op:
            try:
                await self._fetch_status(session_id, op)
            except RemoteError as e:
                op.fail("load_workflow_status", e, "Failed to load workflow status", notify=False)
                return False
            op.succeed()
            return True

    async def _fetch_status(self, session_id: str, op: Optional[_Operation] = None) -> WorkflowStatus:
        """
        One status read, merged if still fresh. Raises RemoteError.
        With an operation the merge is published together with it,
        otherwise (poll ticks) right away.
        """
        token = self._issue(WORKFLOW, session_id)
        status = await self.api.workflow.get_status(session_id)
        if self._accept(WORKFLOW, session_id, token) and self._in_scope(session_id):
            if op is not None:
                op.changes["workflow_status"] = status
            else:
                self._publish(workflow_status=status)
        return status

    async def _refresh_files(self, session_id: str) -> bool:
        with self._operation("is_loading") as op:
            token = self._issue(FILES, session_id)
            try:
                files = await self.api.files.get_session_files(session_id)
            except RemoteError as e:
                op.fail("load_files", e, "Failed to load files", notify=False)
                return False
            if self._accept(FILES, session_id, token) and self._in_scope(session_id):
                op.succeed(files=files)
            else:
                op.succeed()
            return True

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def load_validation_results(self, session_id: str) -> bool:
        with self._operation("is_loading_results") as op:
            token = self._issue(VALIDATION, session_id)
            try:
                results = await self.api.validation.get_results(session_id)
            except RemoteError as e:
                # Usually called automatically; no toast
                op.fail("load_validation_results", e, "Failed to load validation results", notify=False)
                return False

            if self._accept(VALIDATION, session_id, token) and self._in_scope(session_id):
                op.succeed(validation_results=results)
            else:
                op.succeed()
            return True

    async def load_validation_summary(self, session_id: str) -> Optional[ValidationSummary]:
        with self._operation() as op:
            try:
                summary = await self.api.validation.get_summary(session_id)
            except RemoteError as e:
                op.fail("load_validation_summary", e, "Failed to load validation summary", notify=False)
                return None
            op.succeed()
            return summary

    async def clear_validation_results(self, session_id: str) -> bool:
        with self._operation("is_loading_results") as op:
            token = self._issue(VALIDATION, session_id)
            try:
                await self.api.validation.clear_results(session_id)
            except RemoteError as e:
                op.fail("clear_validation_results", e, "Failed to clear validation results")
                return False

            if self._accept(VALIDATION, session_id, token):
                remaining = tuple(r for r in self._state.validation_results if r.session_id != session_id)
                op.succeed("Validation results cleared", validation_results=remaining)
            else:
                op.succeed("Validation results cleared")
            return True

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _active_poller(self, session_id: str) -> Optional[WorkflowPoller]:
        poller = self._pollers.get(session_id)
        return poller if poller is not None and poller.is_active else None

    def poller_for(self, session_id: str) -> Optional[WorkflowPoller]:
        return self._pollers.get(session_id)

    def _start_polling(self, session_id: str, initial_delay: float) -> WorkflowPoller:
        existing = self._active_poller(session_id)
        if existing is not None:
            return existing

        poller = WorkflowPoller(
            session_id,
            fetch_status=self._fetch_status,
            on_finished=self._on_poller_finished,
            interval=self.poll_interval,
            initial_delay=initial_delay,
        )
        self._pollers[session_id] = poller
        self._publish(**self._with_analyzing(session_id, True))
        return poller.start()

    async def _on_poller_finished(self, poller: WorkflowPoller) -> None:
        session_id = poller.session_id
        if self._pollers.get(session_id) is poller:
            del self._pollers[session_id]

        with self._operation() as op:
            op.changes.update(self._with_analyzing(session_id, False))
            if poller.state == PollerState.ERROR and poller.error is not None:
                op.fail("poll_workflow_status", poller.error, "Lost track of the analysis", notify=False)

        if poller.state in (PollerState.COMPLETED, PollerState.FAILED):
            # File statuses changed on the server while polling
            await self._refresh_files(session_id)
        if poller.state == PollerState.COMPLETED:
            await self.load_validation_results(session_id)

    def stop_polling(self, session_id: str) -> bool:
        """Tear down the poller of a session (e.g. its view was closed)"""
        poller = self._pollers.pop(session_id, None)
        stopped = poller.cancel() if poller is not None else False
        if session_id in self._state.analyzing_sessions:
            self._publish(**self._with_analyzing(session_id, False))
        return stopped

    async def aclose(self) -> None:
        """Cancel every poller and wait for their tasks to finish"""
        pollers = list(self._pollers.values())
        self._pollers.clear()
        for poller in pollers:
            poller.cancel()
        for poller in pollers:
            await poller.wait()
