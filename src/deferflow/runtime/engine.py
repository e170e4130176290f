import time
from typing import Any, Optional
from uuid import uuid4

from deferflow.adapters.workers import create_worker_pool
from deferflow.graph.build import build_graph
from deferflow.graph.model import Graph
from deferflow.runtime.bus import MessageBus
from deferflow.runtime.events import RunFinished, RunStarted
from deferflow.runtime.protocols import WorkerPool
from deferflow.runtime.scheduler import Scheduler
from deferflow.spec.task import LazyResult


def _target_name(target: Any) -> str:
    if isinstance(target, Graph):
        return target.root_node.name
    if isinstance(target, LazyResult):
        return target.name
    if isinstance(target, (list, tuple)):
        return "gather"
    return type(target).__name__


class Engine:
    """
    Orchestrates the entire workflow execution: builds the graph, hands it to
    a Scheduler bound to the worker pool and reports the run's lifecycle.
    """

    def __init__(
        self,
        pool: Optional[WorkerPool] = None,
        workers: int = 1,
        backend: Optional[str] = None,
        bus: Optional[MessageBus] = None,
    ):
        self.pool = pool or create_worker_pool(workers, backend)
        self.bus = bus or MessageBus()
        self.last_scheduler: Optional[Scheduler] = None

    @property
    def workers(self) -> int:
        return self.pool.capacity

    async def run(self, target: Any) -> Any:
        """
        Runs `target` (a LazyResult, a literal, a list of targets or a
        prebuilt Graph) and returns its value, or raises the first failure
        on the target's dependency chain.
        """
        run_id = str(uuid4())
        start_time = time.time()

        self.bus.publish(
            RunStarted(
                run_id=run_id,
                target_tasks=[_target_name(target)],
                workers=self.workers,
            )
        )

        try:
            graph = target if isinstance(target, Graph) else build_graph(target)
            scheduler = Scheduler(graph, self.pool, bus=self.bus, run_id=run_id)
            self.last_scheduler = scheduler
            result = await scheduler.run()

            duration = time.time() - start_time
            self.bus.publish(
                RunFinished(run_id=run_id, status="Succeeded", duration=duration)
            )
            return result

        except Exception as e:
            duration = time.time() - start_time
            self.bus.publish(
                RunFinished(
                    run_id=run_id,
                    status="Failed",
                    duration=duration,
                    error=f"{type(e).__name__}: {e}",
                )
            )
            raise

    def shutdown(self):
        self.pool.shutdown()
