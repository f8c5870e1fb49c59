"""
AsyncTask: captures the effective-zone stack when work is scheduled and re-installs it
when the work runs.

Host contract: call AsyncTask.schedule_async_task(name) when the operation is scheduled
and task.run_in_async_scope(callback, ...) when its continuation executes.
Depends: _context, _dispatch.
"""
import logging
import uuid
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from asynczone.errors import DisposedTaskError
from asynczone._zones._context import _install, _restore, current_zones
from asynczone._zones._dispatch import HookEvent, dispatch

if TYPE_CHECKING:
    from asynczone._zones._zone import Zone

logger = logging.getLogger(__name__)

R = TypeVar("R")


class TaskState(str, Enum):
    """AsyncTask lifecycle state."""

    SCHEDULED = "scheduled"
    EXECUTING = "executing"
    COMPLETED = "completed"
    DISPOSED = "disposed"


class AsyncTask:
    """
    One unit of asynchronous work.

    Create with AsyncTask.schedule_async_task(name), not the constructor. The task may be run
    any number of times until dispose() is called; `with task:` disposes it on exit.
    """

    def __init__(self, name: str, snapshot: tuple["Zone", ...]) -> None:
        self._name = str(name)
        self._snapshot = snapshot
        self._state = TaskState.SCHEDULED
        self.task_id = str(uuid.uuid4())
        self.run_count = 0

    @classmethod
    def schedule_async_task(cls, name: str) -> "AsyncTask":
        """
        Capture the current effective-zone stack and notify its zones (innermost first)
        through scheduled_async_task. A raising hook propagates to the caller.
        """
        snapshot = current_zones()
        task = cls(name, snapshot)
        logger.debug("schedule %r over %d zone(s)", task, len(snapshot))
        dispatch(HookEvent.SCHEDULED, task, snapshot)
        return task

    @property
    def name(self) -> str:
        return self._name

    @property
    def snapshot(self) -> tuple["Zone", ...]:
        """Zones captured at scheduling time, innermost last."""
        return self._snapshot

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._state is TaskState.DISPOSED

    def __repr__(self) -> str:
        return f"<AsyncTask {self._name!r} {self._state.value}>"

    def run_in_async_scope(self, callback: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        """
        Run callback with the captured snapshot as the effective-zone stack.

        Dispatches before_async_task_execute, calls callback(*args, **kwargs), then dispatches
        after_async_task_execute whether or not the callback raised. The prior stack is restored
        on every exit path, including hook failures. If a before hook raises, neither the
        callback nor the after hooks run.
        """
        if self._state is TaskState.DISPOSED:
            raise DisposedTaskError(self)

        token = _install(self._snapshot)
        try:
            self._state = TaskState.EXECUTING
            logger.debug("run %r", self)
            dispatch(HookEvent.BEFORE, self, self._snapshot)
            try:
                return callback(*args, **kwargs)
            finally:
                dispatch(HookEvent.AFTER, self, self._snapshot)
        finally:
            _restore(token)
            self.run_count += 1
            # Disposal during the callback wins over completion.
            if self._state is not TaskState.DISPOSED:
                self._state = TaskState.COMPLETED

    def dispose(self) -> None:
        """Render the task inert. Idempotent; does not retract host-level scheduling."""
        if self._state is TaskState.DISPOSED:
            return
        self._state = TaskState.DISPOSED
        logger.debug("dispose %r", self)

    def __enter__(self) -> "AsyncTask":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()
