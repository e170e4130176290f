import asyncio
import time
from typing import List, Sequence

from deferflow.runtime.protocols import Completion, WorkHandle, WorkUnit


class FutureWorkerPool:
    """
    Shared plumbing for pools whose handles wrap asyncio futures.
    Subclasses implement `_start`, which returns the future for a unit.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Worker capacity must be at least 1, got {capacity}.")
        self.capacity = capacity

    def _start(self, unit: WorkUnit) -> asyncio.Future:
        raise NotImplementedError

    def submit(self, unit: WorkUnit) -> WorkHandle:
        return WorkHandle(unit=unit, future=self._start(unit))

    async def wait_any(self, handles: Sequence[WorkHandle]) -> List[Completion]:
        if not handles:
            raise ValueError("wait_any() requires at least one outstanding handle.")

        pending = [h.future for h in handles if not h.future.done()]
        if len(pending) == len(handles):
            await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

        return [self._collect(h) for h in handles if h.future.done()]

    def _collect(self, handle: WorkHandle) -> Completion:
        duration = time.perf_counter() - handle.submitted_at
        future = handle.future
        if future.cancelled():
            return Completion(
                node_id=handle.unit.node_id,
                error=asyncio.CancelledError(f"Task '{handle.unit.name}' was cancelled."),
                duration=duration,
            )
        error = future.exception()
        if error is not None:
            return Completion(node_id=handle.unit.node_id, error=error, duration=duration)
        return Completion(
            node_id=handle.unit.node_id, value=future.result(), duration=duration
        )

    def cancel(self, handles: Sequence[WorkHandle]) -> None:
        for handle in handles:
            if not handle.future.done():
                handle.future.cancel()
            elif not handle.future.cancelled():
                # Mark any stored exception as retrieved
                handle.future.exception()

    def shutdown(self) -> None:
        pass
