"""
Zone: a context frame with optional lifecycle hooks and a lazily computed store.
Depends: _context.
"""
import logging
import threading
import uuid
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING, Any, Callable, Optional

from asynczone.errors import NotEffectiveError
from asynczone._zones._context import _push, _remove_last, current_zones

if TYPE_CHECKING:
    from asynczone._zones._task import AsyncTask

logger = logging.getLogger(__name__)

TaskHook = Callable[["AsyncTask"], None]

_UNSET = object()


@dataclass
class ZoneSpec:
    """
    Lifecycle hooks a zone may define. Each is optional, synchronous, takes the task,
    and its return value is ignored.

    Any object exposing methods with these names can be used as a zone spec.
    """

    scheduled_async_task: Optional[TaskHook] = None
    before_async_task_execute: Optional[TaskHook] = None
    after_async_task_execute: Optional[TaskHook] = None


class Zone:
    """
    A context frame. attach() pushes it onto the effective-zone stack and detach() pops it;
    the store is computed on the first attach and returned by get_store() while effective.

    Usage:
        zone = Zone(store_factory=lambda: {"request_id": rid})
        with zone:
            handle(zone.get_store())
    """

    def __init__(
        self,
        zone_spec: Any = None,
        store_factory: Callable[[], Any] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        self.zone_id = str(uuid.uuid4())
        self.name = name
        self._zone_spec = zone_spec
        self._store_factory = store_factory
        self._store: Any = _UNSET
        self._store_lock = threading.Lock()

    @property
    def zone_spec(self) -> Any:
        return self._zone_spec

    def __repr__(self) -> str:
        label = self.name if self.name is not None else self.zone_id[:8]
        return f"<Zone {label}>"

    def _ensure_store(self) -> None:
        if self._store is not _UNSET:
            return
        with self._store_lock:
            if self._store is not _UNSET:
                return
            # A raising factory leaves the store unset; the next attach tries again.
            self._store = self._store_factory() if self._store_factory is not None else None

    def attach(self) -> "Zone":
        """Push this zone onto the effective-zone stack. Re-entrant: each call adds one entry."""
        self._ensure_store()
        _push(self)
        logger.debug("attach %r (depth %d)", self, len(current_zones()))
        return self

    def detach(self) -> "Zone":
        """
        Remove the most recent stack entry referring to this zone.

        By default the entry need not be on top: zones attached after it stay attached, so
        detaches from unrelated call sites may interleave. Raises ImbalancedDetachError if the
        zone has no entry, including when run_in_async_scope installed a snapshot without it.
        With strict_detach configured, also raises when another zone sits above the entry.
        """
        _remove_last(self)
        logger.debug("detach %r (depth %d)", self, len(current_zones()))
        return self

    def in_effective_zone(self) -> bool:
        return any(z is self for z in current_zones())

    def get_store(self) -> Any:
        """Return the cached store. Raises NotEffectiveError outside the zone's effective scope."""
        if not self.in_effective_zone():
            raise NotEffectiveError(self)
        return self._store

    def __enter__(self) -> "Zone":
        return self.attach()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.detach()
