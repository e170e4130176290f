from .model import Graph, TaskNode, NodeStatus, Literal, Reference
from .build import build_graph, GraphBuilder
from .exceptions import CycleError

__all__ = [
    "Graph",
    "TaskNode",
    "NodeStatus",
    "Literal",
    "Reference",
    "build_graph",
    "GraphBuilder",
    "CycleError",
]
