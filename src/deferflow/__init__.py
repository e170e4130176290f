import asyncio
from typing import Any, Optional

from .spec.task import task, delayed, LazyResult, Task
from .graph.build import build_graph
from .graph.model import Graph, NodeStatus
from .graph.exceptions import CycleError
from .graph.serialize import graph_to_dict
from .runtime.engine import Engine
from .runtime.bus import MessageBus
from .runtime.subscribers import HumanReadableLogSubscriber
from .runtime.exceptions import (
    ExecutionError,
    DependencyFailedError,
    SchedulerConsistencyError,
)
from .adapters.workers import InlineWorkerPool, ThreadWorkerPool, ProcessWorkerPool
from .common.messaging import bus as messaging_bus
from .common.renderers import create_renderer
from .exceptions import DeferflowError
from .tools.visualize import visualize
from .tools.cli import cli

__all__ = [
    "task",
    "delayed",
    "compute",
    "build_graph",
    "graph_to_dict",
    "visualize",
    "cli",
    "LazyResult",
    "Task",
    "Graph",
    "NodeStatus",
    "Engine",
    "MessageBus",
    "InlineWorkerPool",
    "ThreadWorkerPool",
    "ProcessWorkerPool",
    "DeferflowError",
    "CycleError",
    "ExecutionError",
    "DependencyFailedError",
    "SchedulerConsistencyError",
]


def compute(
    target: Any,
    workers: int = 1,
    verbose: bool = False,
    backend: Optional[str] = None,
    log_level: str = "INFO",
    log_format: str = "human",
) -> Any:
    """
    Builds the graph for `target` and runs it to completion.

    This is the primary entry point for users. It returns the target's value
    or raises the failure that prevented it from resolving.

    Args:
        target: A LazyResult, a list of LazyResults, or a prebuilt Graph.
        workers: Maximum number of tasks running at the same time.
        verbose: Report run and task progress on stderr.
        backend: "inline", "thread" or "process". Defaults to inline
            execution for a single worker and threads otherwise.
        log_level: Minimum level of progress messages when verbose.
        log_format: "human", "rich" or "json".
    """
    bus = MessageBus()
    engine = Engine(workers=workers, backend=backend, bus=bus)

    previous_renderer = messaging_bus.renderer
    try:
        if verbose:
            messaging_bus.set_renderer(create_renderer(log_format, min_level=log_level))
            HumanReadableLogSubscriber(bus)
        return asyncio.run(engine.run(target))
    finally:
        messaging_bus.set_renderer(previous_renderer)
        engine.shutdown()
