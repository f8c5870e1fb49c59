"""asynczone: zones and async-context propagation (Zone, AsyncTask, TaskTracker, TraceRecorder)."""
import logging

from asynczone.config import AsyncZoneConfig, get_config, load_config, set_config
from asynczone.errors import (
    AsyncZoneError,
    DisposedTaskError,
    ImbalancedDetachError,
    NotEffectiveError,
    PendingTasksError,
)
from asynczone._zones import (
    AsyncTask,
    HookEvent,
    TaskState,
    Zone,
    ZoneSpec,
    current_zones,
    reset_effective_zones,
)
from asynczone.specs import TaskTracker, TraceRecorder
from asynczone.version import version as __version__

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Zone",
    "ZoneSpec",
    "AsyncTask",
    "TaskState",
    "HookEvent",
    "current_zones",
    "reset_effective_zones",
    "TaskTracker",
    "TraceRecorder",
    "AsyncZoneError",
    "ImbalancedDetachError",
    "NotEffectiveError",
    "DisposedTaskError",
    "PendingTasksError",
    "AsyncZoneConfig",
    "load_config",
    "get_config",
    "set_config",
    "__version__",
]
