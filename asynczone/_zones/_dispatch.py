"""
Hook dispatch over a zone snapshot: innermost zone first, each zone at most once per event,
stop at the first hook that raises.
"""
import logging
from enum import Enum
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Iterator

if TYPE_CHECKING:
    from asynczone._zones._task import AsyncTask
    from asynczone._zones._zone import Zone

logger = logging.getLogger(__name__)


class HookEvent(str, Enum):
    """Lifecycle event kinds and the zone-spec hook each one invokes."""

    SCHEDULED = "scheduled_async_task"
    BEFORE = "before_async_task_execute"
    AFTER = "after_async_task_execute"


def _innermost_first(snapshot: tuple["Zone", ...]) -> Iterator["Zone"]:
    """Yield zones from the end of the snapshot; repeated entries yield only the innermost one."""
    seen: set[int] = set()
    for zone in reversed(snapshot):
        if id(zone) in seen:
            continue
        seen.add(id(zone))
        yield zone


def _hook_for(spec: Any, event: HookEvent) -> Callable[[Any], Any] | None:
    """Look up the hook on a mapping spec by key, on any other spec by attribute."""
    if isinstance(spec, Mapping):
        return spec.get(event.value)
    return getattr(spec, event.value, None)


def dispatch(event: HookEvent, task: "AsyncTask", snapshot: tuple["Zone", ...]) -> None:
    """
    Invoke each zone's hook for event, if the zone defines it. A zone spec may be a ZoneSpec,
    any object with hook methods, or a mapping from hook name to callable.
    A raising hook propagates unmodified and the remaining zones are not notified.
    """
    for zone in _innermost_first(snapshot):
        spec = zone.zone_spec
        if spec is None:
            continue
        hook = _hook_for(spec, event)
        if hook is None:
            continue
        try:
            hook(task)
        except Exception:
            logger.debug("%s hook of %r raised for %r", event.name.lower(), zone, task)
            raise
