from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Set, Tuple, Union


class NodeStatus(Enum):
    """Lifecycle of a node. Transitions only move forward."""

    WAITING = "Waiting"
    READY = "Ready"
    RUNNING = "Running"
    RESOLVED = "Resolved"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NodeStatus.RESOLVED, NodeStatus.FAILED)


# Key of a binding in the target callable: positional index or keyword name.
BindingKey = Union[int, str]


@dataclass(frozen=True)
class Literal:
    """An argument slot whose value is already available."""

    key: BindingKey
    value: Any


@dataclass(frozen=True)
class Reference:
    """An argument slot filled by the value of another node."""

    key: BindingKey
    node_id: int


Binding = Union[Literal, Reference]


@dataclass(eq=False)
class TaskNode:
    """Represents a node in the computation graph."""

    id: int
    name: str
    action: Callable
    bindings: List[Binding] = field(default_factory=list)
    is_async: bool = False

    # Runtime state, mutated only by the Scheduler
    status: NodeStatus = NodeStatus.WAITING
    pending_dependencies: int = 0
    dependents: Set[int] = field(default_factory=set)
    value: Any = None
    failure: Optional[Exception] = None

    def __hash__(self):
        return hash(self.id)

    @property
    def dependencies(self) -> List[int]:
        """Distinct ids of the nodes this node reads from, in binding order."""
        seen: List[int] = []
        for binding in self.bindings:
            if isinstance(binding, Reference) and binding.node_id not in seen:
                seen.append(binding.node_id)
        return seen

    def is_ready(self) -> bool:
        """True for a waiting node whose dependencies have all resolved."""
        return self.pending_dependencies == 0 and self.status is NodeStatus.WAITING

    def resolved_value(self) -> Any:
        if self.status is not NodeStatus.RESOLVED:
            raise ValueError(
                f"Node {self.id} ('{self.name}') has no value in status {self.status.value}."
            )
        return self.value

    def failure_reason(self) -> Exception:
        if self.status is not NodeStatus.FAILED:
            raise ValueError(
                f"Node {self.id} ('{self.name}') has not failed (status {self.status.value})."
            )
        return self.failure


@dataclass
class Graph:
    """
    An arena of nodes addressed by integer id. `nodes[i].id == i` always holds.
    """

    nodes: List[TaskNode] = field(default_factory=list)
    root: int = 0

    def add_node(self, node: TaskNode):
        if node.id != len(self.nodes):
            raise ValueError(
                f"Node id {node.id} does not match arena position {len(self.nodes)}."
            )
        self.nodes.append(node)

    def get_node(self, node_id: int) -> TaskNode:
        return self.nodes[node_id]

    @property
    def root_node(self) -> TaskNode:
        return self.nodes[self.root]

    def edges(self) -> Iterator[Tuple[int, int, BindingKey]]:
        """Yields (source, target, key) for every reference binding."""
        for node in self.nodes:
            for binding in node.bindings:
                if isinstance(binding, Reference):
                    yield binding.node_id, node.id, binding.key

    def ancestors(self, node_id: int) -> Set[int]:
        """All nodes the given node transitively depends on."""
        found: Set[int] = set()
        stack = list(self.nodes[node_id].dependencies)
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            stack.extend(self.nodes[current].dependencies)
        return found

    def __len__(self) -> int:
        return len(self.nodes)
