"""
Trace files: <data_dir>/traces/<trace_id>.jsonl, one event per line, append-only.

A trace file carries its own metadata: TRACE_START opens it and TRACE_END (status and
counts) closes it. summarize() folds the events back into one lifecycle per task, which is
how `asynczone show` reports tasks that were scheduled but never ran.
"""
import json
import uuid
from pathlib import Path
from typing import Any

from asynczone.config import AsyncZoneConfig
from asynczone.events import COUNT_KEYS, EventType, default_counts

TRACE_SUFFIX = ".jsonl"

_COUNT_KEYS_BY_VALUE = {event_type.value: key for event_type, key in COUNT_KEYS.items()}


def validate_trace_id(trace_id: str) -> str:
    """
    Return trace_id if it is a canonical (lowercase, hyphenated) uuid4 string.
    Raises ValueError("invalid trace_id") otherwise, which also rules out path segments.
    """
    try:
        parsed = uuid.UUID(trace_id)
    except (ValueError, TypeError, AttributeError):
        raise ValueError("invalid trace_id")
    if parsed.version != 4 or str(parsed) != trace_id:
        raise ValueError("invalid trace_id")
    return trace_id


def _traces_dir(config: AsyncZoneConfig) -> Path:
    return config.data_dir.expanduser() / "traces"


def trace_path(trace_id: str, config: AsyncZoneConfig) -> Path:
    return _traces_dir(config) / (validate_trace_id(trace_id) + TRACE_SUFFIX)


def open_trace(config: AsyncZoneConfig) -> str:
    """Create an empty trace file under a new trace_id and return the id."""
    trace_id = str(uuid.uuid4())
    path = trace_path(trace_id, config)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=False)
    return trace_id


def append_event(trace_id: str, event: dict[str, Any], config: AsyncZoneConfig) -> None:
    """Append one event as a single JSON line. The trace must have been opened."""
    path = trace_path(trace_id, config)
    if not path.is_file():
        raise FileNotFoundError(f"No trace found for trace_id '{trace_id}'")
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
        f.flush()


def read_trace(trace_id: str, config: AsyncZoneConfig, event_type: EventType | None = None) -> list[dict]:
    """
    Read a trace's events in write order, optionally only one event type.
    Undecodable lines (e.g. a write cut short) are skipped. Raises FileNotFoundError if missing.
    """
    path = trace_path(trace_id, config)
    if not path.is_file():
        raise FileNotFoundError(f"No trace found for trace_id '{trace_id}'")
    events = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(event, dict):
                continue
            if event_type is not None and event.get("event_type") != event_type.value:
                continue
            events.append(event)
    return events


def summarize(events: list[dict]) -> dict[str, Any]:
    """
    Fold a trace's events into its metadata and one record per task.

    Each task record has task_id, name, zones, scheduled_at, runs (completed runs) and
    running (runs started but not finished, e.g. the process died mid-run). never_ran lists
    the task_ids that were scheduled but never started. status stays "recording" until a
    TRACE_END is seen.
    """
    summary: dict[str, Any] = {
        "trace_id": None,
        "trace_name": None,
        "started_at": None,
        "ended_at": None,
        "status": "recording",
        "counts": default_counts(),
    }
    tasks: dict[str, dict[str, Any]] = {}
    for event in events:
        kind = event.get("event_type")
        payload = event.get("payload") or {}
        if kind == EventType.TRACE_START.value:
            summary["trace_id"] = event.get("trace_id")
            summary["trace_name"] = event.get("name")
            summary["started_at"] = event.get("ts")
            continue
        if kind == EventType.TRACE_END.value:
            summary["ended_at"] = event.get("ts")
            summary["status"] = payload.get("status", "ok")
            continue
        count_key = _COUNT_KEYS_BY_VALUE.get(kind)
        task_id = payload.get("task_id")
        if count_key is None or task_id is None:
            continue
        summary["counts"][count_key] += 1
        task = tasks.setdefault(task_id, {
            "task_id": task_id,
            "name": event.get("name"),
            "zones": payload.get("zones", []),
            "scheduled_at": None,
            "runs": 0,
            "running": 0,
        })
        if count_key == "scheduled":
            task["scheduled_at"] = event.get("ts")
        elif count_key == "before":
            task["running"] += 1
        else:
            task["running"] = max(0, task["running"] - 1)
            task["runs"] += 1

    summary["tasks"] = list(tasks.values())
    summary["never_ran"] = [t["task_id"] for t in summary["tasks"] if t["runs"] == 0 and t["running"] == 0]
    return summary


def _trace_ids(config: AsyncZoneConfig) -> list[str]:
    base = _traces_dir(config)
    if not base.is_dir():
        return []
    ids = []
    for path in base.glob("*" + TRACE_SUFFIX):
        try:
            ids.append(validate_trace_id(path.stem))
        except ValueError:
            continue
    return ids


def list_traces(limit: int, config: AsyncZoneConfig) -> list[dict]:
    """
    Summaries of the most recent traces by started_at, newest first, up to limit. Per-task
    records are replaced by their totals. Traces without a TRACE_START sort last.
    """
    summaries = []
    for trace_id in _trace_ids(config):
        try:
            summary = summarize(read_trace(trace_id, config))
        except OSError:
            continue
        summary["trace_id"] = trace_id
        summary["task_total"] = len(summary.pop("tasks"))
        summary["never_ran"] = len(summary["never_ran"])
        summaries.append(summary)
    # ISO8601 with a fixed format sorts as text.
    summaries.sort(key=lambda s: (s["started_at"] is not None, s["started_at"] or ""), reverse=True)
    return summaries[:limit]


def find_trace(prefix: str, config: AsyncZoneConfig) -> str:
    """
    Resolve a trace_id or a prefix of one (e.g. the short id `list` prints). Several matches
    resolve to the most recently modified trace. Raises FileNotFoundError if none match.
    """
    prefix = (prefix or "").strip()
    if not prefix:
        raise FileNotFoundError("Trace ID is required")
    matches = [tid for tid in _trace_ids(config) if tid.startswith(prefix)]
    if not matches:
        raise FileNotFoundError(f"No trace found matching '{prefix}'")
    return max(matches, key=lambda tid: trace_path(tid, config).stat().st_mtime)
