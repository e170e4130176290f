import heapq
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from deferflow.graph.model import Graph, NodeStatus, Reference, TaskNode
from deferflow.runtime.bus import MessageBus
from deferflow.runtime.events import (
    NodeStatusChanged,
    TaskExecutionFinished,
    TaskExecutionStarted,
    TaskSkipped,
)
from deferflow.runtime.exceptions import (
    DependencyFailedError,
    ExecutionError,
    SchedulerConsistencyError,
)
from deferflow.runtime.protocols import Completion, WorkerPool, WorkHandle, WorkUnit

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    NodeStatus.WAITING: {NodeStatus.READY, NodeStatus.FAILED},
    NodeStatus.READY: {NodeStatus.RUNNING, NodeStatus.FAILED},
    NodeStatus.RUNNING: {NodeStatus.RESOLVED, NodeStatus.FAILED},
    NodeStatus.RESOLVED: set(),
    NodeStatus.FAILED: set(),
}


class Scheduler:
    """
    Drives one graph to completion on a worker pool.

    The scheduler is the only component that mutates node state. It runs as a
    single coroutine and only suspends while waiting for the pool to report
    finished work, so no locking is needed on the graph.
    """

    def __init__(
        self,
        graph: Graph,
        pool: WorkerPool,
        bus: Optional[MessageBus] = None,
        run_id: Optional[str] = None,
    ):
        self.graph = graph
        self.pool = pool
        self.bus = bus or MessageBus()
        self.run_id = run_id
        self.capacity = max(1, pool.capacity)

        # Heap of (priority, node_id); stale entries are skipped on pop
        self._ready: List[Tuple[int, int]] = []
        self._running: Dict[int, WorkHandle] = {}
        self.max_running = 0

    @staticmethod
    def priority(node: TaskNode) -> int:
        # More direct dependents first; heapq pops the smallest key.
        return -len(node.dependents)

    async def run(self, root: Optional[int] = None) -> Any:
        root_id = self.graph.root if root is None else root
        root_node = self.graph.get_node(root_id)

        for node in self.graph.nodes:
            if node.status is NodeStatus.READY:
                self._push_ready(node)

        try:
            while not root_node.status.is_terminal:
                self._dispatch()
                # A rejected submission can fail the root without anything running
                if root_node.status.is_terminal:
                    break

                if not self._running:
                    raise SchedulerConsistencyError(self._describe_stuck(root_id))

                completions = await self.pool.wait_any(list(self._running.values()))
                for completion in completions:
                    self._on_completion(completion)
        finally:
            if self._running:
                logger.debug(
                    "Discarding %d in-flight task(s) after run concluded.",
                    len(self._running),
                )
                self.pool.cancel(list(self._running.values()))
                self._running.clear()

        if root_node.status is NodeStatus.FAILED:
            raise root_node.failure
        return root_node.value

    # --- Dispatch ---

    def _push_ready(self, node: TaskNode):
        heapq.heappush(self._ready, (self.priority(node), node.id))

    def _dispatch(self):
        while len(self._running) < self.capacity and self._ready:
            _, node_id = heapq.heappop(self._ready)
            node = self.graph.get_node(node_id)
            if node.status is not NodeStatus.READY:
                continue
            self._submit(node)

    def _bind_arguments(self, node: TaskNode) -> Tuple[tuple, Dict[str, Any]]:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for binding in node.bindings:
            if isinstance(binding, Reference):
                value = self.graph.get_node(binding.node_id).resolved_value()
            else:
                value = binding.value

            if isinstance(binding.key, int):
                args.append(value)
            else:
                kwargs[binding.key] = value
        return tuple(args), kwargs

    def _submit(self, node: TaskNode):
        args, kwargs = self._bind_arguments(node)
        unit = WorkUnit(
            node_id=node.id,
            name=node.name,
            func=node.action,
            args=args,
            kwargs=kwargs,
            is_async=node.is_async,
        )
        self._transition(node, NodeStatus.RUNNING)
        self.bus.publish(
            TaskExecutionStarted(run_id=self.run_id, task_id=node.id, task_name=node.name)
        )
        logger.debug("Submitting node %d (%s)", node.id, node.name)

        try:
            handle = self.pool.submit(unit)
        except Exception as e:
            self._fail(node, e, duration=0.0)
            return

        self._running[node.id] = handle
        self.max_running = max(self.max_running, len(self._running))

    # --- Completion ---

    def _on_completion(self, completion: Completion):
        node = self.graph.get_node(completion.node_id)
        if self._running.pop(node.id, None) is None:
            raise SchedulerConsistencyError(
                f"Received a completion for node {node.id} ('{node.name}') "
                "which is not running."
            )

        if completion.ok:
            self._resolve(node, completion.value, completion.duration)
        else:
            self._fail(node, completion.error, completion.duration)

    def _resolve(self, node: TaskNode, value: Any, duration: float):
        node.value = value
        self._transition(node, NodeStatus.RESOLVED)
        self.bus.publish(
            TaskExecutionFinished(
                run_id=self.run_id,
                task_id=node.id,
                task_name=node.name,
                status="Succeeded",
                duration=duration,
                result_preview=repr(value)[:100],
            )
        )

        for dependent_id in sorted(node.dependents):
            dependent = self.graph.get_node(dependent_id)
            if dependent.status is not NodeStatus.WAITING:
                # Already failed through another dependency
                continue

            released = Counter(
                b.node_id for b in dependent.bindings if isinstance(b, Reference)
            )[node.id]
            dependent.pending_dependencies -= released
            if dependent.pending_dependencies < 0:
                raise SchedulerConsistencyError(
                    f"Node {dependent.id} ('{dependent.name}') has a negative "
                    "pending dependency count."
                )
            if dependent.pending_dependencies == 0:
                self._transition(dependent, NodeStatus.READY)
                self._push_ready(dependent)

    def _fail(self, node: TaskNode, error: BaseException, duration: float):
        failure = ExecutionError(node.id, node.name, error)
        node.failure = failure
        self._transition(node, NodeStatus.FAILED)
        self.bus.publish(
            TaskExecutionFinished(
                run_id=self.run_id,
                task_id=node.id,
                task_name=node.name,
                status="Failed",
                duration=duration,
                error=f"{type(error).__name__}: {error}",
            )
        )
        self._propagate_failure(node, failure)

    def _propagate_failure(self, origin: TaskNode, failure: ExecutionError):
        stack = sorted(origin.dependents, reverse=True)
        while stack:
            node = self.graph.get_node(stack.pop())
            if node.status.is_terminal:
                continue
            if node.status is NodeStatus.RUNNING:
                raise SchedulerConsistencyError(
                    f"Node {node.id} ('{node.name}') is running although its "
                    f"dependency '{origin.name}' never resolved."
                )

            node.failure = DependencyFailedError(node.id, node.name, failure)
            self._transition(node, NodeStatus.FAILED)
            self.bus.publish(
                TaskSkipped(
                    run_id=self.run_id,
                    task_id=node.id,
                    task_name=node.name,
                    reason="UpstreamFailed",
                    upstream_task=failure.task_name,
                )
            )
            stack.extend(sorted(node.dependents, reverse=True))

    # --- State machine ---

    def _transition(self, node: TaskNode, to_status: NodeStatus):
        from_status = node.status
        if to_status not in _ALLOWED_TRANSITIONS[from_status]:
            raise SchedulerConsistencyError(
                f"Illegal transition for node {node.id} ('{node.name}'): "
                f"{from_status.value} -> {to_status.value}"
            )
        node.status = to_status
        self.bus.publish(
            NodeStatusChanged(
                run_id=self.run_id,
                task_id=node.id,
                task_name=node.name,
                from_status=from_status.value,
                to_status=to_status.value,
            )
        )

    def _describe_stuck(self, root_id: int) -> str:
        pending = [
            f"{n.name}#{n.id} ({n.status.value}, {n.pending_dependencies} pending)"
            for n in (self.graph.get_node(i) for i in sorted(self.graph.ancestors(root_id)))
            if not n.status.is_terminal
        ]
        root = self.graph.get_node(root_id)
        return (
            f"Scheduler is stuck: root '{root.name}' is {root.status.value} but "
            f"nothing is running or ready. Unresolved ancestors: {pending or 'none'}"
        )
