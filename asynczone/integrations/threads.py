"""
concurrent.futures adapter: work submitted to an executor runs with the effective-zone stack
of the submitting code. Worker threads start from an empty stack, so without this a zone
attached by the caller would not be visible in the worker.
"""
from concurrent.futures import Executor, Future
from typing import Any, Callable, TypeVar

from asynczone._integration_utils import _run_once, _task_name
from asynczone._zones import AsyncTask

R = TypeVar("R")


def submit(
    executor: Executor,
    fn: Callable[..., R],
    /,
    *args: Any,
    name: str | None = None,
    **kwargs: Any,
) -> "Future[R]":
    """executor.submit() with zone propagation. The task is disposed after fn runs."""
    task = AsyncTask.schedule_async_task(_task_name(fn, name))
    return executor.submit(_run_once, task, fn, *args, **kwargs)
