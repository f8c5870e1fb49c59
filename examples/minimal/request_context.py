"""
Minimal runnable example: a request id stored in a zone follows work through the event loop.
Run with: python examples/minimal/request_context.py (from repo root).
"""
import asyncio

from asynczone import Zone
from asynczone.integrations.asyncio import call_soon, create_task


def log(request: Zone, message: str) -> None:
    print(f"[{request.get_store()['request_id']}] {message}")


async def handle(request: Zone, path: str) -> None:
    log(request, f"GET {path}")
    await asyncio.sleep(0.01)
    call_soon(log, request, "response flushed")
    log(request, "200 OK")


async def main() -> None:
    tasks = []
    for i, path in enumerate(["/users", "/orders"]):
        request = Zone(store_factory=lambda i=i: {"request_id": f"req-{i}"}, name=f"request-{i}")
        with request:
            tasks.append(create_task(handle(request, path)))
    await asyncio.gather(*tasks)
    await asyncio.sleep(0)


if __name__ == "__main__":
    asyncio.run(main())
