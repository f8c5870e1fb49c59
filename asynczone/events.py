"""
Trace events: one JSON object per line of a trace file.

A task's lifecycle shows up as TASK_SCHEDULED, then one TASK_BEFORE/TASK_AFTER pair per
run, all carrying the same payload["task_id"]. TRACE_START and TRACE_END bracket them.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from asynczone._zones import AsyncTask

FORMAT_VERSION = "0.2"


class EventType(str, Enum):
    """Event type enum."""

    TRACE_START = "TRACE_START"
    TRACE_END = "TRACE_END"
    TASK_SCHEDULED = "TASK_SCHEDULED"
    TASK_BEFORE = "TASK_BEFORE"
    TASK_AFTER = "TASK_AFTER"


# Task event type -> key in a trace's counts.
COUNT_KEYS = {
    EventType.TASK_SCHEDULED: "scheduled",
    EventType.TASK_BEFORE: "before",
    EventType.TASK_AFTER: "after",
}


def default_counts() -> dict[str, int]:
    return {key: 0 for key in COUNT_KEYS.values()}


def utc_now_iso_ms_z() -> str:
    """Return current UTC time as ISO8601 with milliseconds and trailing Z."""
    now = datetime.now(timezone.utc)
    # Format: 2026-02-15T20:31:05.123Z
    return now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def task_payload(task: "AsyncTask") -> dict[str, Any]:
    """Payload describing a task: id, state, run count and its captured zones (innermost last)."""
    return {
        "task_id": task.task_id,
        "state": task.state.value,
        "run_count": task.run_count,
        "zones": [repr(z) for z in task.snapshot],
    }


def new_event(
    event_type: EventType,
    trace_id: str,
    name: str,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an event dict. payload must already be JSON-serializable."""
    return {
        "trace_id": trace_id,
        "event_type": event_type.value,
        "ts": utc_now_iso_ms_z(),
        "name": name,
        "payload": payload if payload is not None else {},
    }
