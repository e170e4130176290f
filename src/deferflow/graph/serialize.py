import importlib
from typing import Any, Dict, Optional

from deferflow.graph.model import Graph, Literal, Reference, TaskNode
from deferflow.spec.task import Task

# --- Callable path helpers ---


def _get_func_path(func: Any) -> Optional[Dict[str, str]]:
    """
    Extracts module and qualname from a callable, or returns None when the
    callable cannot be re-imported by that path (lambdas, closures, partials).
    """
    if func is None:
        return None

    if isinstance(func, Task):
        func = func.func

    module_name = getattr(func, "__module__", None)
    qualname = getattr(func, "__qualname__", None)
    if not module_name or not qualname or "<" in qualname:
        return None

    return {"module": module_name, "qualname": qualname}


def _load_func_from_path(data: Optional[Dict[str, str]]) -> Optional[Any]:
    """Dynamically loads a function from module and qualname."""
    if not data:
        return None
    module_name = data.get("module")
    qualname = data.get("qualname")

    if not module_name or not qualname:
        return None

    try:
        module = importlib.import_module(module_name)
        obj = module
        for part in qualname.split("."):
            obj = getattr(obj, part)

        # If the object is a Task wrapper (due to @task decorator), unwrap it
        if isinstance(obj, Task):
            return obj.func

        return obj
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Could not restore function {module_name}.{qualname}: {e}")


# --- Graph to Dict ---


def graph_to_dict(graph: Graph) -> Dict[str, Any]:
    """
    Read-only snapshot of a graph's structure and state, suitable for
    rendering or debugging. Literal values are represented by their repr.
    """
    return {
        "root": graph.root,
        "nodes": [_node_to_dict(n) for n in graph.nodes],
        "edges": [
            {"source": source, "target": target, "arg": str(key)}
            for source, target, key in graph.edges()
        ],
    }


def _node_to_dict(node: TaskNode) -> Dict[str, Any]:
    data = {
        "id": node.id,
        "name": node.name,
        "status": node.status.value,
        "pending_dependencies": node.pending_dependencies,
        "dependents": sorted(node.dependents),
        "literal_inputs": {
            str(b.key): repr(b.value) for b in node.bindings if isinstance(b, Literal)
        },
        "references": {
            str(b.key): b.node_id for b in node.bindings if isinstance(b, Reference)
        },
    }

    callable_path = _get_func_path(node.action)
    if callable_path:
        data["callable"] = callable_path

    if node.failure is not None:
        data["failure"] = f"{type(node.failure).__name__}: {node.failure}"

    return data
