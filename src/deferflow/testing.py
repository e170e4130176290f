import asyncio
from typing import Iterable, List, Optional, Sequence

from deferflow.runtime.bus import MessageBus
from deferflow.runtime.events import Event
from deferflow.runtime.protocols import Completion, WorkerPool, WorkHandle, WorkUnit


class SpySubscriber:
    """A test utility to collect events from a MessageBus."""

    def __init__(self, bus: MessageBus):
        self.events = []
        bus.subscribe(Event, self.collect)

    def collect(self, event: Event):
        self.events.append(event)

    def events_of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]


class ScriptedWorkerPool(WorkerPool):
    """
    A worker pool whose completion order is dictated by the test.

    Each submitted unit is executed immediately, but its completion is only
    reported when `wait_any` picks it: the first outstanding unit whose name
    appears earliest in `completion_order`, otherwise the oldest one. Exactly
    one completion is reported per `wait_any` call. Coroutine actions are not
    supported.
    """

    def __init__(self, capacity: int = 2, completion_order: Optional[Iterable[str]] = None):
        self.capacity = capacity
        self.completion_order: List[str] = list(completion_order or [])
        self.call_log: List[str] = []
        self.completion_log: List[str] = []
        self.cancelled: List[str] = []
        self.max_outstanding = 0
        self._outstanding = 0

    def submit(self, unit: WorkUnit) -> WorkHandle:
        self.call_log.append(unit.name)
        future = asyncio.get_running_loop().create_future()
        try:
            future.set_result(unit.func(*unit.args, **unit.kwargs))
        except Exception as e:
            future.set_exception(e)

        self._outstanding += 1
        self.max_outstanding = max(self.max_outstanding, self._outstanding)
        return WorkHandle(unit=unit, future=future)

    async def wait_any(self, handles: Sequence[WorkHandle]) -> List[Completion]:
        chosen = self._choose(handles)
        self._outstanding -= 1
        self.completion_log.append(chosen.unit.name)
        # Give other coroutines a chance to run, like a real pool would
        await asyncio.sleep(0)

        error = chosen.future.exception()
        if error is not None:
            return [Completion(node_id=chosen.unit.node_id, error=error)]
        return [Completion(node_id=chosen.unit.node_id, value=chosen.future.result())]

    def _choose(self, handles: Sequence[WorkHandle]) -> WorkHandle:
        for name in self.completion_order:
            for handle in handles:
                if handle.unit.name == name:
                    return handle
        return handles[0]

    def cancel(self, handles: Sequence[WorkHandle]) -> None:
        for handle in handles:
            self.cancelled.append(handle.unit.name)
            self._outstanding -= 1
            if not handle.future.cancelled():
                handle.future.exception()

    def shutdown(self) -> None:
        pass
