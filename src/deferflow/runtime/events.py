import itertools
import time
from dataclasses import dataclass, field
from typing import List, Optional

# Fast, thread-safe counter for event IDs
_event_id_gen = itertools.count()


@dataclass(frozen=True)
class Event:
    event_id: str = field(default_factory=lambda: str(next(_event_id_gen)))
    timestamp: float = field(default_factory=time.time)

    run_id: Optional[str] = None


@dataclass(frozen=True)
class RunStarted(Event):
    # Must provide defaults because base class has defaults
    target_tasks: List[str] = field(default_factory=list)
    workers: int = 1


@dataclass(frozen=True)
class RunFinished(Event):
    status: str = "Unknown"  # "Succeeded", "Failed"
    duration: float = 0.0
    error: Optional[str] = None


@dataclass(frozen=True)
class TaskEvent(Event):
    task_id: int = -1
    task_name: str = ""


@dataclass(frozen=True)
class NodeStatusChanged(TaskEvent):
    """Emitted on every node status transition. Purely observational."""

    from_status: str = ""
    to_status: str = ""


@dataclass(frozen=True)
class TaskExecutionStarted(TaskEvent):
    pass


@dataclass(frozen=True)
class TaskExecutionFinished(TaskEvent):
    status: str = "Unknown"  # "Succeeded", "Failed"
    duration: float = 0.0
    result_preview: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TaskSkipped(TaskEvent):
    reason: str = "Unknown"  # "UpstreamFailed"
    upstream_task: Optional[str] = None
