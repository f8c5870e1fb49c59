"""
Exceptions raised by asynczone.

All errors are synchronous and raised at the call site that triggered them.
Exceptions from user hooks and store factories are never wrapped.
"""


class AsyncZoneError(RuntimeError):
    """Base class for asynczone errors."""


class ImbalancedDetachError(AsyncZoneError):
    """detach() without a matching effective attach(), or out of nesting order."""

    def __init__(self, zone: object, reason: str = "zone is not attached") -> None:
        self.zone = zone
        super().__init__(f"cannot detach {zone!r}: {reason}")


class NotEffectiveError(AsyncZoneError):
    """get_store() called while the zone is not in the effective-zone stack."""

    def __init__(self, zone: object) -> None:
        self.zone = zone
        super().__init__(f"{zone!r} is not in the effective-zone stack")


class DisposedTaskError(AsyncZoneError):
    """run_in_async_scope() called on a disposed task."""

    def __init__(self, task: object) -> None:
        self.task = task
        super().__init__(f"{task!r} has been disposed")


class PendingTasksError(AsyncZoneError):
    """A TaskTracker still has tasks that were scheduled but never executed."""

    def __init__(self, pending: list) -> None:
        self.pending = list(pending)
        names = ", ".join(repr(t.name) for t in self.pending)
        super().__init__(f"{len(self.pending)} pending task(s): {names}")
