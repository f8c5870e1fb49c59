"""
Host integration tests: asyncio loop callbacks and coroutines, and executor submission,
carry the scheduling-time zones to where the work runs.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from asynczone import TaskTracker, TraceRecorder, Zone, current_zones
from asynczone.integrations import asyncio as zone_asyncio
from asynczone.integrations import threads as zone_threads


def test_call_soon_runs_callback_in_scheduling_zone():
    zone = Zone(store_factory=lambda: "request-1")
    tracker = TaskTracker()
    tracking = Zone(tracker)
    results = []

    async def main():
        done = asyncio.Event()

        def callback(tag):
            results.append((tag, zone.get_store(), current_zones()))
            done.set()

        with tracking, zone:
            zone_asyncio.call_soon(callback, "soon")
        assert tracker.has_pending()
        await done.wait()

    asyncio.run(main())

    assert results == [("soon", "request-1", (tracking, zone))]
    tracker.assert_idle(include_live=True)


def test_call_later_uses_explicit_name():
    recorder = TraceRecorder()

    async def main():
        loop = asyncio.get_running_loop()
        fired = loop.create_future()
        with Zone(recorder):
            zone_asyncio.call_later(0.01, fired.set_result, True, name="timer")
        await fired

    asyncio.run(main())

    names = {e["name"] for e in recorder.events}
    assert names == {"timer"}
    assert recorder.counts == {"scheduled": 1, "before": 1, "after": 1}


def test_cancelled_handle_leaves_task_pending():
    tracker = TaskTracker()

    async def main():
        with Zone(tracker):
            handle = zone_asyncio.call_soon(lambda: None)
        handle.cancel()
        await asyncio.sleep(0)

    asyncio.run(main())

    assert len(tracker.pending) == 1
    assert tracker.pending[0].name.endswith("<lambda>")


def test_create_task_keeps_zone_across_awaits():
    zone = Zone(store_factory=lambda: {"user": "ada"}, name="req")
    other = Zone(name="other")
    tracker = TaskTracker()
    seen = []

    async def handler():
        seen.append(zone.get_store())
        await asyncio.sleep(0)
        seen.append(current_zones())
        await asyncio.sleep(0.001)
        seen.append(zone.in_effective_zone())
        return "handled"

    async def main():
        with Zone(tracker), zone:
            task = zone_asyncio.create_task(handler(), name="handler")
        with other:
            return await task

    assert asyncio.run(main()) == "handled"
    assert seen[0] == {"user": "ada"}
    assert seen[1][-1] is zone and other not in seen[1]
    assert seen[2] is True
    tracker.assert_idle(include_live=True)
    assert tracker.completed_count >= 3


def test_zone_attached_inside_coroutine_spans_awaits():
    outer = Zone(name="outer")
    inner = Zone(name="inner")
    tracker = TaskTracker()
    seen = []

    async def handler():
        with inner:
            await asyncio.sleep(0)
            seen.append(current_zones())
            await asyncio.sleep(0.001)
            seen.append(inner.in_effective_zone())
        seen.append(current_zones())

    async def main():
        with Zone(tracker), outer:
            task = zone_asyncio.create_task(handler(), name="handler")
        await task

    asyncio.run(main())

    assert seen[0][-2:] == (outer, inner)
    assert seen[1] is True
    assert seen[2][-1] is outer and inner not in seen[2]
    tracker.assert_idle(include_live=True)
    assert tracker.scheduled_count == tracker.completed_count


def test_bound_coroutine_exception_propagates_and_disposes():
    tracker = TaskTracker()

    async def failing():
        await asyncio.sleep(0)
        raise ValueError("coroutine failed")

    async def main():
        with Zone(tracker):
            bound = zone_asyncio.bind_coroutine(failing())
        await bound

    with pytest.raises(ValueError, match="coroutine failed"):
        asyncio.run(main())
    tracker.assert_idle(include_live=True)


def test_bound_coroutine_receives_cancellation():
    cancelled = []
    zone = Zone(name="cancel-me")

    async def sleeper():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(zone.in_effective_zone())
            raise

    async def main():
        with zone:
            task = zone_asyncio.create_task(sleeper())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(main())
    assert cancelled == [True]


def test_concurrent_asyncio_tasks_keep_separate_zones():
    zones = [Zone(store_factory=lambda i=i: i, name=f"z{i}") for i in range(3)]

    async def worker(zone):
        values = []
        for _ in range(3):
            values.append(zone.get_store())
            await asyncio.sleep(0)
        return values, current_zones()

    async def main():
        tasks = []
        for zone in zones:
            with zone:
                tasks.append(zone_asyncio.create_task(worker(zone)))
        return await asyncio.gather(*tasks)

    results = asyncio.run(main())
    for i, (values, stack) in enumerate(results):
        assert values == [i, i, i]
        assert stack == (zones[i],)


def test_executor_submit_propagates_zone_to_worker_thread():
    zone = Zone(store_factory=lambda: "from-caller")
    tracker = TaskTracker()

    with ThreadPoolExecutor(max_workers=2) as executor:
        with Zone(tracker), zone:
            future = zone_threads.submit(executor, lambda suffix: zone.get_store() + suffix, "!")
        assert future.result(timeout=5) == "from-caller!"

    tracker.assert_idle(include_live=True)


def test_executor_submit_forwards_kwargs_and_errors():
    def divide(a, *, by):
        return a / by

    with ThreadPoolExecutor(max_workers=1) as executor:
        assert zone_threads.submit(executor, divide, 6, by=3, name="divide").result(timeout=5) == 2
        failing = zone_threads.submit(executor, divide, 1, by=0)
        with pytest.raises(ZeroDivisionError):
            failing.result(timeout=5)


def test_integrations_module_lazy_attribute():
    import asynczone.integrations as integrations

    assert integrations.threads is zone_threads
    with pytest.raises(AttributeError):
        integrations.langchain
