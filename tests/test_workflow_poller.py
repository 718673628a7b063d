import asyncio

import pytest

from qc_client.api.errors import RemoteError, ServerError
from qc_client.models.file import ProcessingStatus
from qc_client.models.workflow import WorkflowStage
from qc_client.services.session_store import SessionStore
from qc_client.services.workflow_poller import PollerState, WorkflowPoller

from tests.conftest import POLL_INTERVAL, make_status, wait_until


def scripted_fetcher(stages):
    remaining = iter(stages)

    async def fetch(session_id):
        return make_status(session_id, next(remaining))

    return fetch


def poller_tasks():
    return [
        task for task in asyncio.all_tasks()
        if task.get_name().startswith("workflow-poller-") and not task.done()
    ]


class TestPollerLoop:

    @pytest.mark.asyncio
    async def test_keeps_polling_through_non_terminal_stages(self):
        finished = []

        async def on_finished(poller):
            finished.append(poller.state)

        fetch = scripted_fetcher(["uploading", "something_new", "processing_files", "validating", "completed"])
        poller = WorkflowPoller("s1", fetch, on_finished, interval=0, initial_delay=0).start()

        assert await poller.wait() == PollerState.COMPLETED
        assert poller.ticks == 5
        assert poller.last_status.workflow_stage == WorkflowStage.COMPLETED
        assert finished == [PollerState.COMPLETED]

    @pytest.mark.asyncio
    async def test_failed_stage_ends_loop(self):
        finished = []

        async def on_finished(poller):
            finished.append(poller.state)

        poller = WorkflowPoller("s1", scripted_fetcher(["processing_files", "failed"]), on_finished, 0, 0).start()

        assert await poller.wait() == PollerState.FAILED
        assert poller.ticks == 2
        assert finished == [PollerState.FAILED]

    @pytest.mark.asyncio
    async def test_fetch_error_ends_loop_in_error(self):
        finished = []

        async def fetch(session_id):
            raise ServerError("Database unavailable", 500, "Database unavailable")

        async def on_finished(poller):
            finished.append(poller.state)

        poller = WorkflowPoller("s1", fetch, on_finished, interval=0, initial_delay=0).start()

        assert await poller.wait() == PollerState.ERROR
        assert poller.error.status_code == 500
        assert poller.ticks == 1
        assert finished == [PollerState.ERROR]

    @pytest.mark.asyncio
    async def test_unexpected_error_ends_loop_in_error(self):
        finished = []

        async def fetch(session_id):
            raise RuntimeError("Cannot send a request, as the client has been closed.")

        async def on_finished(poller):
            finished.append(poller.state)

        poller = WorkflowPoller("s1", fetch, on_finished, interval=0, initial_delay=0).start()

        assert await poller.wait() == PollerState.ERROR
        assert isinstance(poller.error, RemoteError)
        assert "client has been closed" in poller.error.message
        assert poller.is_active is False
        assert finished == [PollerState.ERROR]

    @pytest.mark.asyncio
    async def test_cancel_while_fetch_in_flight(self):
        started = asyncio.Event()
        finished = []

        async def fetch(session_id):
            started.set()
            await asyncio.Event().wait()

        async def on_finished(poller):
            finished.append(poller.state)

        poller = WorkflowPoller("s1", fetch, on_finished, interval=0, initial_delay=0).start()
        await started.wait()

        assert poller.cancel() is True
        assert await poller.wait() == PollerState.CANCELLED
        assert poller.cancel() is False
        assert finished == []
        assert poller_tasks() == []

    @pytest.mark.asyncio
    async def test_cancel_during_initial_delay(self):
        calls = []

        async def fetch(session_id):
            calls.append(session_id)
            return make_status(session_id, "completed")

        async def on_finished(poller):
            pass

        poller = WorkflowPoller("s1", fetch, on_finished, interval=0, initial_delay=10).start()
        await asyncio.sleep(0)
        poller.cancel()

        assert await poller.wait() == PollerState.CANCELLED
        assert calls == []
        assert poller.ticks == 0

    @pytest.mark.asyncio
    async def test_cancel_before_start_never_raises(self):
        async def fetch(session_id):
            return make_status(session_id, "completed")

        async def on_finished(poller):
            pass

        poller = WorkflowPoller("s1", fetch, on_finished)

        assert poller.cancel() is True
        assert await poller.wait() == PollerState.CANCELLED
        assert poller.is_finished

    @pytest.mark.asyncio
    async def test_start_twice_is_rejected(self):
        async def on_finished(poller):
            pass

        poller = WorkflowPoller("s1", scripted_fetcher(["completed"]), on_finished, 0, 0).start()

        with pytest.raises(RuntimeError):
            poller.start()
        await poller.wait()


@pytest.mark.asyncio
async def test_only_one_poller_per_session(store, service):
    session_id = service.add_session()
    service.add_file(session_id, "traveler.pdf")
    service.script_stages(session_id, ["processing_files"] * 4 + ["validating", "completed"])

    results = await asyncio.gather(store.run_analysis(session_id), store.run_analysis(session_id))

    assert results == [True, True]
    assert len(poller_tasks()) == 1
    assert await store.run_analysis(session_id) is True
    assert len(poller_tasks()) == 1
    assert service.calls["analyze"] == 1

    assert await store.poller_for(session_id).wait() == PollerState.COMPLETED
    assert poller_tasks() == []


@pytest.mark.asyncio
async def test_polling_stops_at_completed_and_loads_results(store, service):
    session = await store.create_session()
    service.add_file(session.id, "traveler.pdf")
    seen_stages = []
    store.subscribe(
        lambda state: state.workflow_status and seen_stages.append(state.workflow_status.workflow_stage)
    )

    assert await store.run_analysis(session.id) is True
    assert store.state.is_analyzing_session(session.id)
    poller = store.poller_for(session.id)

    assert await poller.wait() == PollerState.COMPLETED
    status_calls = service.calls["status"]
    await asyncio.sleep(POLL_INTERVAL * 5)

    assert status_calls == 3
    assert service.calls["status"] == status_calls
    assert service.calls["results"] == 1
    assert len(store.state.validation_results) == 7
    assert store.state.is_analyzing is False
    assert store.poller_for(session.id) is None
    assert [f.processing_status for f in store.state.files] == [ProcessingStatus.COMPLETED]
    assert WorkflowStage.PROCESSING_FILES in seen_stages
    assert seen_stages[-1] == WorkflowStage.COMPLETED


@pytest.mark.asyncio
async def test_failed_stage_does_not_load_results(store, service):
    session = await store.create_session()
    service.add_file(session.id, "traveler.pdf")
    service.script_stages(session.id, ["processing_files", "failed"])

    await store.run_analysis(session.id)

    assert await store.poller_for(session.id).wait() == PollerState.FAILED
    assert service.calls["results"] == 0
    assert store.state.workflow_status.workflow_stage == WorkflowStage.FAILED
    assert store.state.is_analyzing is False


@pytest.mark.asyncio
async def test_poll_error_is_recorded_without_notice(store, service, notices):
    session = await store.create_session()
    service.fail("status", 500, "Database unavailable")

    await store.run_analysis(session.id)

    assert await store.poller_for(session.id).wait() == PollerState.ERROR
    assert store.state.error.operation == "poll_workflow_status"
    assert store.state.error.message == "Database unavailable"
    assert store.state.is_analyzing is False
    assert [n.level for n in notices] == ["success", "success"]


@pytest.mark.asyncio
async def test_stop_polling_cancels_the_loop(store, service):
    session = await store.create_session()
    service.script_stages(session.id, ["processing_files"])

    await store.run_analysis(session.id)
    poller = store.poller_for(session.id)
    await wait_until(lambda: service.calls["status"] >= 2)

    assert store.stop_polling(session.id) is True
    assert await poller.wait() == PollerState.CANCELLED
    assert store.state.is_analyzing is False
    assert store.stop_polling(session.id) is False

    status_calls = service.calls["status"]
    await asyncio.sleep(POLL_INTERVAL * 5)
    assert service.calls["status"] == status_calls


@pytest.mark.asyncio
async def test_clear_while_status_request_in_flight(store, service):
    session = await store.create_session()
    service.script_stages(session.id, ["processing_files"])
    gate = service.hold("status")

    await store.run_analysis(session.id)
    poller = store.poller_for(session.id)
    await wait_until(lambda: service.calls["status"] == 1)
    store.clear_session()
    gate.set()

    assert await poller.wait() == PollerState.CANCELLED
    await asyncio.sleep(POLL_INTERVAL * 3)
    assert store.state.workflow_status is None
    assert store.state.current_session is None
    assert store.state.is_analyzing is False
    assert service.calls["status"] == 1


@pytest.mark.asyncio
async def test_polling_other_session_does_not_touch_current(store, service):
    current = await store.create_session()
    other_id = service.add_session()
    service.add_file(other_id, "traveler.pdf")

    await store.run_analysis(other_id)

    assert await store.poller_for(other_id).wait() == PollerState.COMPLETED
    assert store.state.current_session == current
    assert store.state.workflow_status is None
    assert store.state.validation_results == ()
    assert store.state.is_analyzing is False


@pytest.mark.asyncio
async def test_retry_resumes_polling_until_completed(store, service, notices):
    session_id = service.add_session()
    service.add_file(session_id, "traveler.pdf")
    service.add_file(session_id, "photo.jpg")
    service.failing_files["photo.jpg"] = "OCR could not read the serial number"
    service.script_stages(session_id, ["processing_files", "failed"])
    await store.load_session(session_id)

    await store.run_analysis(session_id)
    assert await store.poller_for(session_id).wait() == PollerState.FAILED

    assert await store.retry_analysis(session_id) is True
    assert store.state.workflow_status.workflow_stage == WorkflowStage.PROCESSING_FILES
    assert store.state.is_analyzing is True

    assert await store.poller_for(session_id).wait() == PollerState.COMPLETED
    assert store.state.workflow_status.workflow_stage == WorkflowStage.COMPLETED
    assert len(store.state.validation_results) == 7
    assert store.state.is_analyzing is False
    assert "Retrying analysis..." in [n.message for n in notices]


@pytest.mark.asyncio
async def test_retry_failure_is_reported(store, service):
    session = await store.create_session()
    service.fail("retry", 409, "No failed files to retry")

    assert await store.retry_analysis(session.id) is False

    assert store.state.error.operation == "retry_analysis"
    assert store.state.error.message == "No failed files to retry"
    assert store.state.is_analyzing is False
    assert store.poller_for(session.id) is None


@pytest.mark.asyncio
async def test_aclose_cancels_running_pollers(api, service):
    store = SessionStore(api, poll_interval=POLL_INTERVAL, poll_initial_delay=POLL_INTERVAL)
    session_id = service.add_session()
    service.script_stages(session_id, ["processing_files"])
    await store.run_analysis(session_id)
    poller = store.poller_for(session_id)

    await store.aclose()

    assert poller.state == PollerState.CANCELLED
    assert poller_tasks() == []


@pytest.mark.asyncio
async def test_failed_stage_refreshes_file_statuses(store, service):
    session = await store.create_session()
    service.add_file(session.id, "traveler.pdf")
    service.add_file(session.id, "photo.jpg")
    service.failing_files["photo.jpg"] = "OCR could not read the serial number"
    service.script_stages(session.id, ["processing_files", "failed"])

    await store.run_analysis(session.id)

    assert await store.poller_for(session.id).wait() == PollerState.FAILED
    statuses = {f.original_filename: f.processing_status for f in store.state.files}
    assert statuses == {"traveler.pdf": ProcessingStatus.COMPLETED, "photo.jpg": ProcessingStatus.FAILED}
    assert store.state.has_failed_files is True
    assert store.state.is_loading is False


@pytest.mark.asyncio
async def test_closed_client_ends_polling(store, service):
    session = await store.create_session()
    service.script_stages(session.id, ["processing_files"])

    await store.run_analysis(session.id)
    poller = store.poller_for(session.id)
    await store.api.aclose()

    assert await poller.wait() == PollerState.ERROR
    assert store.state.error.operation == "poll_workflow_status"
    assert store.state.is_analyzing is False
    assert store.poller_for(session.id) is None

    # Nothing is left behind that would swallow the next attempt
    assert await store.run_analysis(session.id) is False
    assert store.state.error.operation == "run_analysis"
    assert store.state.is_analyzing is False
    assert service.calls["analyze"] == 1


@pytest.mark.asyncio
async def test_retry_without_fresh_status_has_no_success_notice(store, service, notices):
    session = await store.create_session()
    service.fail("status", 500, "Database unavailable")

    assert await store.retry_analysis(session.id) is False

    assert service.calls["retry"] == 1
    assert [(n.level, n.message) for n in notices] == [
        ("success", "New session created successfully"),
        ("error", "Database unavailable"),
    ]
    assert store.state.error.operation == "retry_analysis"
    assert store.state.is_analyzing is False
