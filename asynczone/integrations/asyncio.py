"""
asyncio host adapter: loop callbacks and coroutines that carry the effective-zone stack
from the point they were scheduled to the point they run.

Usage:
    from asynczone.integrations.asyncio import call_soon, create_task

    with zone:
        call_soon(on_ready)           # on_ready sees zone as effective
        create_task(fetch(url))       # every step of fetch() sees zone as effective
"""
import asyncio
import logging
import types
from typing import Any, Callable, Coroutine, Generator, TypeVar

from asynczone._integration_utils import _run_once, _task_name
from asynczone._zones import AsyncTask

logger = logging.getLogger(__name__)

R = TypeVar("R")


def call_soon(
    callback: Callable[..., Any],
    *args: Any,
    name: str | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Handle:
    """
    loop.call_soon() with zone propagation. The task is scheduled now, run once in the loop
    and disposed. Cancelling the returned handle does not dispose the task.
    Without loop, the running loop is used (RuntimeError if there is none).
    """
    loop = loop if loop is not None else asyncio.get_running_loop()
    task = AsyncTask.schedule_async_task(_task_name(callback, name))
    return loop.call_soon(_run_once, task, callback, *args)


def call_later(
    delay: float,
    callback: Callable[..., Any],
    *args: Any,
    name: str | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.TimerHandle:
    """loop.call_later() with zone propagation; see call_soon()."""
    loop = loop if loop is not None else asyncio.get_running_loop()
    task = AsyncTask.schedule_async_task(_task_name(callback, name))
    return loop.call_later(delay, _run_once, task, callback, *args)


def _step(advance: Callable[[Any], Any], value: Any, name: str) -> tuple[Any, AsyncTask]:
    """
    Advance the coroutine by one step, then schedule its continuation while the step's
    stack, including any zone the coroutine attached, is still effective.
    """
    yielded = advance(value)
    return yielded, AsyncTask.schedule_async_task(name)


@types.coroutine
def _drive(task: AsyncTask, coro: Coroutine[Any, Any, R], name: str) -> Generator[Any, Any, R]:
    """
    Step coro by hand and pass whatever it yields straight through to the event loop.
    Each step runs in its own task; a step that suspends schedules the task for the next one.
    """
    send_value: Any = None
    error: BaseException | None = None
    try:
        while True:
            if error is None:
                advance, value = coro.send, send_value
            else:
                advance, value = coro.throw, error
            try:
                yielded, following = task.run_in_async_scope(_step, advance, value, name)
            except StopIteration as stop:
                return stop.value
            finally:
                task.dispose()
            task = following
            send_value, error = None, None
            try:
                send_value = yield yielded
            except BaseException as e:
                # Cancellation and close() are delivered here; forward them into coro.
                error = e
    finally:
        task.dispose()


def bind_coroutine(coro: Coroutine[Any, Any, R], name: str | None = None) -> Coroutine[Any, Any, R]:
    """
    Schedule a task now and return a coroutine that runs the first step of coro in its scope.
    Every later step runs in a task scheduled at the end of the step before it, so zones the
    coroutine attaches itself stay effective across its awaits. Each task is disposed once
    its step has run.
    """
    task_name = _task_name(coro, name)
    task = AsyncTask.schedule_async_task(task_name)

    async def _bound() -> R:
        return await _drive(task, coro, task_name)

    return _bound()


def create_task(
    coro: Coroutine[Any, Any, R],
    name: str | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> "asyncio.Task[R]":
    """loop.create_task() on bind_coroutine(coro)."""
    loop = loop if loop is not None else asyncio.get_running_loop()
    bound = bind_coroutine(coro, name)
    logger.debug("create_task %s", name or _task_name(coro, None))
    return loop.create_task(bound, name=name)
