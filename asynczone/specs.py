"""
Ready-made zone specs.

TaskTracker answers "is there outstanding work?" for tests. TraceRecorder turns lifecycle
hooks into trace events, optionally persisted to <data_dir>/traces/<trace_id>.jsonl.

Usage:
    tracker = TaskTracker()
    with Zone(tracker, name="test"):
        start_background_work()
    drain_event_loop()
    tracker.assert_idle()
"""
import logging
import threading
import uuid
from types import TracebackType
from typing import Any

from asynczone.config import AsyncZoneConfig, get_config
from asynczone.errors import PendingTasksError
from asynczone.events import COUNT_KEYS, EventType, default_counts, new_event, task_payload
from asynczone.storage import append_event, open_trace
from asynczone._zones import AsyncTask, TaskState

logger = logging.getLogger(__name__)


class TaskTracker:
    """
    Tracks every task scheduled while its zone was effective.

    A task is pending until its first run starts; live until it is disposed. Disposed tasks
    are dropped from the tracker the next time it schedules or is queried, so a long-lived
    tracker only holds on to tasks that may still run.
    """

    def __init__(self) -> None:
        self._tasks: list[AsyncTask] = []
        self._executing: list[AsyncTask] = []
        self._lock = threading.Lock()
        self.scheduled_count = 0
        self.completed_count = 0

    def _prune(self) -> None:
        # Caller holds the lock.
        self._tasks = [t for t in self._tasks if not t.disposed]

    def scheduled_async_task(self, task: AsyncTask) -> None:
        with self._lock:
            self._prune()
            self._tasks.append(task)
            self.scheduled_count += 1

    def before_async_task_execute(self, task: AsyncTask) -> None:
        with self._lock:
            self._executing.append(task)

    def after_async_task_execute(self, task: AsyncTask) -> None:
        with self._lock:
            # Nested runs of the same task unwind innermost first.
            for index in range(len(self._executing) - 1, -1, -1):
                if self._executing[index] is task:
                    del self._executing[index]
                    break
            self.completed_count += 1

    @property
    def pending(self) -> list[AsyncTask]:
        """Tasks scheduled but never run, excluding disposed ones."""
        with self._lock:
            self._prune()
            return [t for t in self._tasks if t.state is TaskState.SCHEDULED]

    @property
    def live(self) -> list[AsyncTask]:
        """Tasks not yet disposed, including re-entrant tasks between runs."""
        with self._lock:
            self._prune()
            return list(self._tasks)

    @property
    def executing(self) -> list[AsyncTask]:
        with self._lock:
            return list(self._executing)

    def has_pending(self) -> bool:
        return bool(self.pending)

    def assert_idle(self, include_live: bool = False) -> None:
        """
        Raise PendingTasksError if any task is pending (or, with include_live, not yet disposed).
        """
        outstanding = self.live if include_live else self.pending
        if outstanding:
            raise PendingTasksError(outstanding)

    def clear(self) -> None:
        """Forget all tracked tasks and reset counters."""
        with self._lock:
            self._tasks.clear()
            self._executing.clear()
            self.scheduled_count = 0
            self.completed_count = 0


class TraceRecorder:
    """
    Records TASK_SCHEDULED / TASK_BEFORE / TASK_AFTER events for tasks in its zone.

    Events are kept in memory (self.events). With persist=True a trace is created under
    config.data_dir, TRACE_START is written immediately, every event is appended to the
    trace file, and close() writes TRACE_END with the final status and counts. Events
    observed after close() are kept in memory only.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        persist: bool = False,
        config: AsyncZoneConfig | None = None,
    ) -> None:
        self.trace_name = name or "trace"
        self.persist = persist
        self.events: list[dict[str, Any]] = []
        self.counts = default_counts()
        self.closed = False
        self._lock = threading.Lock()
        self._config = config
        if persist:
            self._config = config if config is not None else get_config()
            self.trace_id = open_trace(self._config)
            self._write(new_event(EventType.TRACE_START, self.trace_id, self.trace_name))
        else:
            self.trace_id = str(uuid.uuid4())

    def _write(self, event: dict[str, Any]) -> None:
        if self.persist and not self.closed:
            append_event(self.trace_id, event, self._config)

    def _record(self, event_type: EventType, task: AsyncTask) -> None:
        event = new_event(event_type, self.trace_id, task.name, task_payload(task))
        with self._lock:
            self.events.append(event)
            self.counts[COUNT_KEYS[event_type]] += 1
            self._write(event)

    def scheduled_async_task(self, task: AsyncTask) -> None:
        self._record(EventType.TASK_SCHEDULED, task)

    def before_async_task_execute(self, task: AsyncTask) -> None:
        self._record(EventType.TASK_BEFORE, task)

    def after_async_task_execute(self, task: AsyncTask) -> None:
        self._record(EventType.TASK_AFTER, task)

    def events_of(self, event_type: EventType) -> list[dict[str, Any]]:
        return [e for e in self.events if e["event_type"] == event_type.value]

    def close(self, status: str = "ok") -> None:
        """Finish the trace. Idempotent. status is "ok" or "error"."""
        with self._lock:
            if self.closed:
                return
            if self.persist:
                payload = {"status": status, "counts": dict(self.counts)}
                self._write(new_event(EventType.TRACE_END, self.trace_id, "trace_end", payload))
                logger.debug("closed trace %s (%s)", self.trace_id, status)
            self.closed = True

    def __enter__(self) -> "TraceRecorder":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close("error" if exc_type is not None else "ok")
