"""
Shared helpers for host integrations.

Integrations schedule one AsyncTask per host operation and dispose it once the
operation's continuation has run; nothing here discovers operations on its own.
"""
import functools
from typing import Any, Callable, TypeVar

from asynczone._zones import AsyncTask

R = TypeVar("R")


def _task_name(target: Any, name: str | None) -> str:
    """Explicit name, else the callable's qualified name, else its repr."""
    if name:
        return name
    while isinstance(target, functools.partial):
        target = target.func
    return getattr(target, "__qualname__", None) or getattr(target, "__name__", None) or repr(target)


def _run_once(task: AsyncTask, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run fn in task's scope, then dispose the task whatever happened."""
    with task:
        return task.run_in_async_scope(fn, *args, **kwargs)
