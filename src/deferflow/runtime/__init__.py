from .bus import MessageBus
from .engine import Engine
from .exceptions import (
    DependencyFailedError,
    ExecutionError,
    SchedulerConsistencyError,
)
from .protocols import Completion, WorkerPool, WorkHandle, WorkUnit
from .scheduler import Scheduler
from .subscribers import HumanReadableLogSubscriber

__all__ = [
    "Engine",
    "MessageBus",
    "Scheduler",
    "WorkerPool",
    "WorkUnit",
    "WorkHandle",
    "Completion",
    "HumanReadableLogSubscriber",
    "ExecutionError",
    "DependencyFailedError",
    "SchedulerConsistencyError",
]
