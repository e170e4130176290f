import graphlib
from typing import Any, Dict, List

from deferflow.graph.exceptions import CycleError
from deferflow.graph.model import Binding, Graph, Literal, NodeStatus, Reference, TaskNode
from deferflow.spec.task import LazyResult, Task, delayed


def _gather_values(*args: Any) -> List[Any]:
    return list(args)


_gather = Task(_gather_values, name="gather")


def _contains_lazy(obj: Any) -> bool:
    if isinstance(obj, LazyResult):
        return True
    if isinstance(obj, (list, tuple, set, frozenset)):
        return any(_contains_lazy(item) for item in obj)
    if isinstance(obj, dict):
        return any(_contains_lazy(v) for v in obj.values())
    return False


class GraphBuilder:
    def __init__(self):
        self.graph = Graph()
        # Identity map: LazyResult._uuid -> node id in the arena
        self._visited: Dict[str, int] = {}

    def build(self, target: Any) -> Graph:
        if isinstance(target, (list, tuple)):
            target = _gather(*target)
        elif not isinstance(target, LazyResult):
            target = delayed(target)

        self.graph.root = self._visit(target)
        self._link_dependents()
        self._check_acyclic()
        self._initialize_state()
        return self.graph

    def _visit(self, result: LazyResult) -> int:
        if result._uuid in self._visited:
            return self._visited[result._uuid]

        # Register before descending so that a self-referencing expression
        # terminates and is reported by the cycle check.
        node = TaskNode(
            id=len(self.graph.nodes),
            name=result.task.name,
            action=result.task.func,
            is_async=result.task.is_async,
        )
        self.graph.add_node(node)
        self._visited[result._uuid] = node.id

        bindings: List[Binding] = []
        for index, value in enumerate(result.args):
            bindings.append(self._bind(node, index, value))
        for name, value in result.kwargs.items():
            bindings.append(self._bind(node, name, value))
        node.bindings = bindings
        return node.id

    def _bind(self, node: TaskNode, key: Any, value: Any) -> Binding:
        if isinstance(value, LazyResult):
            return Reference(key=key, node_id=self._visit(value))
        if _contains_lazy(value):
            raise TypeError(
                f"Argument '{key}' of task '{node.name}' nests a deferred value inside "
                f"a {type(value).__name__}. Pass deferred values as direct arguments."
            )
        return Literal(key=key, value=value)

    def _link_dependents(self):
        for source, target, _ in self.graph.edges():
            self.graph.nodes[source].dependents.add(target)

    def _check_acyclic(self):
        deps = {node.id: set(node.dependencies) for node in self.graph.nodes}
        try:
            graphlib.TopologicalSorter(deps).prepare()
        except graphlib.CycleError as e:
            cycle = e.args[1]
            names = [self.graph.nodes[node_id].name for node_id in cycle]
            raise CycleError(cycle, names) from None

    def _initialize_state(self):
        for node in self.graph.nodes:
            node.pending_dependencies = sum(
                1 for binding in node.bindings if isinstance(binding, Reference)
            )
            node.status = (
                NodeStatus.READY if node.pending_dependencies == 0 else NodeStatus.WAITING
            )


def build_graph(target: Any) -> Graph:
    """Helper function to build a graph from a result."""
    return GraphBuilder().build(target)
