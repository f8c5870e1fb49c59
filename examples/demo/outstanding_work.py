"""
Outstanding-work demo: a TaskTracker notices a timer that never fired, and a TraceRecorder
persists every lifecycle event of the run:
- TRACE_START / TRACE_END
- TASK_SCHEDULED, TASK_BEFORE, TASK_AFTER for each callback and coroutine step

Run from repo root:
   python -m examples.demo.outstanding_work
Then:
  asynczone list
  asynczone show <trace_id>     # the timer shows up as "never ran"
"""
import asyncio

from asynczone import PendingTasksError, TaskTracker, TraceRecorder, Zone
from asynczone.integrations.asyncio import call_later, call_soon, create_task


async def fetch(name: str) -> str:
    await asyncio.sleep(0.01)
    return f"{name}: done"


async def run_demo(tracker: TaskTracker, recorder: TraceRecorder) -> None:
    with Zone(recorder, name="recorder"), Zone(tracker, name="tracker"):
        call_soon(print, "callback ran")
        job = create_task(fetch("job"), name="fetch")
        forgotten = call_later(60, print, "never printed", name="forgotten-timer")
    print(await job)
    await asyncio.sleep(0)
    try:
        tracker.assert_idle()
    except PendingTasksError as e:
        print(f"outstanding work detected: {e}")
    forgotten.cancel()


if __name__ == "__main__":
    tracker = TaskTracker()
    with TraceRecorder("outstanding-work demo", persist=True) as recorder:
        asyncio.run(run_demo(tracker, recorder))
    print(f"trace {recorder.trace_id}: {recorder.counts}")
