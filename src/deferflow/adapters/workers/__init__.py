from typing import Optional

from deferflow.runtime.protocols import WorkerPool

from .inline import InlineWorkerPool
from .local import ThreadWorkerPool
from .process import ProcessWorkerPool

BACKENDS = ("inline", "thread", "process")


def create_worker_pool(workers: int = 1, backend: Optional[str] = None) -> WorkerPool:
    """
    Builds a worker pool from a backend name. Without an explicit backend a
    single worker runs inline and several workers use threads.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}.")

    if backend is None:
        backend = "inline" if workers == 1 else "thread"

    if backend == "inline":
        if workers != 1:
            raise ValueError("The inline backend runs exactly one task at a time.")
        return InlineWorkerPool()
    if backend == "thread":
        return ThreadWorkerPool(workers)
    if backend == "process":
        return ProcessWorkerPool(workers)
    raise ValueError(f"Unknown worker backend '{backend}'. Choose one of {BACKENDS}.")


__all__ = [
    "InlineWorkerPool",
    "ThreadWorkerPool",
    "ProcessWorkerPool",
    "create_worker_pool",
    "BACKENDS",
]
