"""
Built-in zone spec tests: TaskTracker outstanding-work detection, TraceRecorder events
in memory and on disk.
"""
import gc
import weakref

import pytest

from asynczone import AsyncTask, PendingTasksError, TaskTracker, TraceRecorder, Zone
from asynczone.config import load_config
from asynczone.events import EventType
from asynczone.storage import read_trace, summarize
from tests.conftest import get_latest_trace_id


def test_tracker_reports_pending_until_task_runs():
    tracker = TaskTracker()
    with Zone(tracker):
        first = AsyncTask.schedule_async_task("first")
        second = AsyncTask.schedule_async_task("second")

    assert tracker.pending == [first, second]
    assert tracker.has_pending()

    first.run_in_async_scope(lambda: None)
    assert tracker.pending == [second]

    second.run_in_async_scope(lambda: None)
    assert not tracker.has_pending()
    tracker.assert_idle()
    assert tracker.scheduled_count == 2
    assert tracker.completed_count == 2


def test_tracker_assert_idle_names_pending_tasks():
    tracker = TaskTracker()
    with Zone(tracker):
        AsyncTask.schedule_async_task("never-run")

    with pytest.raises(PendingTasksError, match="never-run") as exc_info:
        tracker.assert_idle()
    assert [t.name for t in exc_info.value.pending] == ["never-run"]


def test_tracker_drops_disposed_tasks():
    tracker = TaskTracker()
    with Zone(tracker):
        task = AsyncTask.schedule_async_task("cancelled")
    task.dispose()

    tracker.assert_idle()
    tracker.assert_idle(include_live=True)


def test_tracker_releases_disposed_tasks():
    tracker = TaskTracker()
    with Zone(tracker):
        for i in range(100):
            task = AsyncTask.schedule_async_task(f"t{i}")
            task.run_in_async_scope(lambda: None)
            task.dispose()

    assert len(tracker._tasks) <= 1
    assert tracker.live == []
    assert tracker._tasks == []
    assert tracker.scheduled_count == 100
    assert tracker.completed_count == 100


def test_tracker_does_not_keep_disposed_tasks_alive():
    tracker = TaskTracker()
    with Zone(tracker):
        task = AsyncTask.schedule_async_task("short-lived")
    task.dispose()
    ref = weakref.ref(task)
    del task

    assert tracker.pending == []
    gc.collect()
    assert ref() is None


def test_tracker_live_includes_reentrant_tasks_between_runs():
    tracker = TaskTracker()
    with Zone(tracker):
        task = AsyncTask.schedule_async_task("stepper")
    task.run_in_async_scope(lambda: None)

    tracker.assert_idle()
    with pytest.raises(PendingTasksError):
        tracker.assert_idle(include_live=True)
    task.dispose()
    tracker.assert_idle(include_live=True)


def test_tracker_sees_tasks_scheduled_from_inside_tracked_tasks():
    """Work scheduled by a continuation inherits the tracker through the snapshot."""
    tracker = TaskTracker()
    with Zone(tracker):
        parent = AsyncTask.schedule_async_task("parent")

    child = parent.run_in_async_scope(AsyncTask.schedule_async_task, "child")

    assert tracker.pending == [child]


def test_tracker_executing_during_run():
    tracker = TaskTracker()
    with Zone(tracker):
        task = AsyncTask.schedule_async_task("t")

    during = task.run_in_async_scope(lambda: tracker.executing)

    assert during == [task]
    assert tracker.executing == []


def test_tracker_clear():
    tracker = TaskTracker()
    with Zone(tracker):
        AsyncTask.schedule_async_task("t")
    tracker.clear()
    assert tracker.pending == []
    assert tracker.scheduled_count == 0


def test_recorder_in_memory_events():
    recorder = TraceRecorder("memory")
    with Zone(recorder, name="rec"):
        task = AsyncTask.schedule_async_task("load")
    task.run_in_async_scope(lambda: None)

    types = [e["event_type"] for e in recorder.events]
    assert types == ["TASK_SCHEDULED", "TASK_BEFORE", "TASK_AFTER"]
    scheduled = recorder.events_of(EventType.TASK_SCHEDULED)[0]
    assert scheduled["name"] == "load"
    assert scheduled["trace_id"] == recorder.trace_id
    assert scheduled["payload"]["task_id"] == task.task_id
    assert scheduled["payload"]["state"] == "scheduled"
    assert scheduled["payload"]["zones"] == ["<Zone rec>"]
    assert recorder.counts == {"scheduled": 1, "before": 1, "after": 1}


def test_recorder_persists_trace(temp_data_dir):
    with TraceRecorder("persisted", persist=True) as recorder:
        with Zone(recorder):
            task = AsyncTask.schedule_async_task("io")
        task.run_in_async_scope(lambda: None)

    config = load_config()
    trace_id = get_latest_trace_id(config)
    assert trace_id == recorder.trace_id

    events = read_trace(trace_id, config)
    assert [e["event_type"] for e in events] == [
        "TRACE_START",
        "TASK_SCHEDULED",
        "TASK_BEFORE",
        "TASK_AFTER",
        "TRACE_END",
    ]
    assert events[-1]["payload"] == {"status": "ok", "counts": {"scheduled": 1, "before": 1, "after": 1}}
    summary = summarize(events)
    assert summary["status"] == "ok"
    assert summary["trace_name"] == "persisted"
    assert [t["runs"] for t in summary["tasks"]] == [1]
    assert summary["never_ran"] == []


def test_recorder_marks_error_status_when_block_raises(temp_data_dir):
    with pytest.raises(ValueError):
        with TraceRecorder("failing", persist=True):
            raise ValueError("boom")

    config = load_config()
    summary = summarize(read_trace(get_latest_trace_id(config), config))
    assert summary["status"] == "error"


def test_recorder_keeps_events_in_memory_after_close(temp_data_dir):
    recorder = TraceRecorder("closed-early", persist=True)
    zone = Zone(recorder)
    recorder.close()
    recorder.close()

    with zone:
        AsyncTask.schedule_async_task("late")

    assert len(recorder.events_of(EventType.TASK_SCHEDULED)) == 1
    events = read_trace(recorder.trace_id, load_config())
    assert [e["event_type"] for e in events] == ["TRACE_START", "TRACE_END"]
