"""
Zones, the effective-zone stack, hook dispatch and AsyncTask.

The stack lives in a ContextVar, so each thread and each asyncio task sees its own value.
Within one context, attach/detach and run_in_async_scope are strictly LIFO along the call stack.
"""
from asynczone._zones._context import current_zones, reset_effective_zones
from asynczone._zones._dispatch import HookEvent, dispatch
from asynczone._zones._task import AsyncTask, TaskState
from asynczone._zones._zone import Zone, ZoneSpec

__all__ = [
    "Zone",
    "ZoneSpec",
    "AsyncTask",
    "TaskState",
    "HookEvent",
    "dispatch",
    "current_zones",
    "reset_effective_zones",
]
