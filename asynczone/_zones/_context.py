"""
Effective-zone stack: a ContextVar holding an immutable tuple of zones (most recent last).

Every mutation replaces the tuple, so a captured snapshot can never change under a task.
Only Zone.attach/detach and AsyncTask.run_in_async_scope go through the helpers below.
Depends: asynczone.config, asynczone.errors.
"""
import logging
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

from asynczone.config import get_config
from asynczone.errors import ImbalancedDetachError

if TYPE_CHECKING:
    from asynczone._zones._zone import Zone

logger = logging.getLogger(__name__)

_effective_zones_var: ContextVar[tuple["Zone", ...]] = ContextVar(
    "asynczone_effective_zones", default=()
)


def current_zones() -> tuple["Zone", ...]:
    """Return the effective-zone stack of the current context, innermost last."""
    return _effective_zones_var.get()


def reset_effective_zones() -> None:
    """Empty the effective-zone stack of the current context. For test isolation."""
    _effective_zones_var.set(())


def _push(zone: "Zone") -> None:
    stack = _effective_zones_var.get() + (zone,)
    _effective_zones_var.set(stack)
    depth = len(stack)
    warn_depth = get_config().stack_warn_depth
    # Warn once per crossing, not on every push above the limit.
    if depth == warn_depth + 1:
        logger.warning(
            "effective-zone stack depth %d exceeds %d; attach() without detach()?",
            depth,
            warn_depth,
        )


def _remove_last(zone: "Zone") -> None:
    """
    Remove the most recent entry referring to zone.
    In strict mode the entry must also be the topmost one.
    """
    stack = _effective_zones_var.get()
    for index in range(len(stack) - 1, -1, -1):
        if stack[index] is zone:
            break
    else:
        raise ImbalancedDetachError(zone)
    if index != len(stack) - 1 and get_config().strict_detach:
        raise ImbalancedDetachError(
            zone, f"{stack[-1]!r} was attached after it and is still attached"
        )
    _effective_zones_var.set(stack[:index] + stack[index + 1 :])


def _install(snapshot: tuple["Zone", ...]) -> Token:
    """Replace the stack with snapshot. Returns the token that restores the prior stack."""
    return _effective_zones_var.set(snapshot)


def _restore(token: Token) -> None:
    _effective_zones_var.reset(token)
