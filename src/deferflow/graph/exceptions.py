from typing import List, Sequence

from deferflow.exceptions import DeferflowError


class CycleError(DeferflowError):
    """
    Raised at graph construction time when the dependency edges of a
    workflow do not form a DAG. No node is executed.
    """

    def __init__(self, cycle: Sequence[int], names: Sequence[str]):
        self.cycle: List[int] = list(cycle)
        self.names: List[str] = list(names)
        path = " -> ".join(f"{name}#{node_id}" for node_id, name in zip(cycle, names))
        super().__init__(f"Dependency cycle detected: {path}")
