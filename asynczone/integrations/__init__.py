"""
Host integrations. Submodules are imported on first attribute access.

asynczone.integrations.asyncio  - call_soon, call_later, bind_coroutine, create_task
asynczone.integrations.threads  - submit
"""
import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from asynczone.integrations import asyncio, threads

_SUBMODULES = ("asyncio", "threads")


def __getattr__(name: str):
    """Lazy load integration submodules."""
    if name in _SUBMODULES:
        return importlib.import_module(f"{__name__}.{name}")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
