from typing import Any

from deferflow.graph.build import build_graph
from deferflow.graph.model import Graph, NodeStatus, TaskNode

_STATUS_COLORS = {
    NodeStatus.WAITING: "white",
    NodeStatus.READY: "lightyellow",
    NodeStatus.RUNNING: "lightblue",
    NodeStatus.RESOLVED: "palegreen",
    NodeStatus.FAILED: "lightcoral",
}


def visualize(target: Any) -> str:
    """
    Builds the computation graph for a target (or takes a built Graph) and
    returns its representation in the Graphviz DOT language format.
    """
    graph = target if isinstance(target, Graph) else build_graph(target)

    dot_parts = [
        "digraph DeferflowWorkflow {",
        '  rankdir="TB";',
        '  node [shape=box, style="rounded,filled", fillcolor=white];',
    ]

    for node in graph.nodes:
        label = _escape(f"{node.name}\\n#{node.id} ({node.status.value})")
        shape = _get_node_shape(node, graph)
        color = _STATUS_COLORS[node.status]
        dot_parts.append(
            f'  "{node.id}" [label="{label}", shape={shape}, fillcolor={color}];'
        )

    for source, target_id, key in graph.edges():
        dot_parts.append(f'  "{source}" -> "{target_id}" [label="{_escape(str(key))}"];')

    dot_parts.append("}")
    return "\n".join(dot_parts)


def _escape(text: str) -> str:
    return text.replace('"', '\\"')


def _get_node_shape(node: TaskNode, graph: Graph) -> str:
    if node.id == graph.root:
        return "doubleoctagon"
    if not node.bindings:
        return "ellipse"
    return "box"
