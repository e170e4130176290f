import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence


@dataclass(frozen=True)
class WorkUnit:
    """A node's action together with its fully resolved arguments."""

    node_id: int
    name: str
    func: Callable
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    is_async: bool = False


@dataclass
class WorkHandle:
    """An in-flight unit of work, as returned by `WorkerPool.submit`."""

    unit: WorkUnit
    future: asyncio.Future
    submitted_at: float = field(default_factory=time.perf_counter)


@dataclass(frozen=True)
class Completion:
    """The outcome of one unit of work."""

    node_id: int
    value: Any = None
    error: Optional[BaseException] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class WorkerPool(Protocol):
    """
    Protocol for the substrate that actually runs units of work.
    The scheduler never submits more than `capacity` units at once.
    """

    capacity: int

    def submit(self, unit: WorkUnit) -> WorkHandle: ...

    async def wait_any(self, handles: Sequence[WorkHandle]) -> List[Completion]:
        """
        Blocks until at least one of the handles has finished and returns the
        completions of every finished handle, in the order they were given.
        """
        ...

    def cancel(self, handles: Sequence[WorkHandle]) -> None:
        """Best-effort cancellation of work whose result is no longer needed."""
        ...

    def shutdown(self) -> None: ...
