import operator

import pytest

import deferflow as df
from deferflow.graph.build import build_graph
from deferflow.graph.serialize import _get_func_path, _load_func_from_path, graph_to_dict


@df.task
def scale(x, factor=2):
    return x * factor


def test_graph_to_dict_exposes_nodes_and_edges():
    leaf = df.delayed(3, name="leaf")
    graph = build_graph(scale(leaf, factor=10))

    data = graph_to_dict(graph)

    assert data["root"] == 0
    assert [n["name"] for n in data["nodes"]] == ["scale", "leaf"]
    assert data["edges"] == [{"source": 1, "target": 0, "arg": "0"}]

    root = data["nodes"][0]
    assert root["status"] == "Waiting"
    assert root["literal_inputs"] == {"factor": "10"}
    assert root["references"] == {"0": 1}
    assert root["callable"]["qualname"] == "scale"


def test_graph_to_dict_does_not_mutate_state():
    graph = build_graph(scale(1))
    before = graph.root_node.status
    graph_to_dict(graph)
    assert graph.root_node.status is before


def test_task_functions_are_resolved_through_their_wrapper():
    path = _get_func_path(scale)
    assert path == {"module": __name__, "qualname": "scale"}
    assert _load_func_from_path(path) is scale.func


def test_local_functions_have_no_import_path():
    def local():
        return 1

    assert _get_func_path(local) is None
    assert _get_func_path(lambda: 1) is None


def test_builtin_functions_round_trip():
    path = _get_func_path(operator.add)
    assert _load_func_from_path(path) is operator.add


def test_unknown_paths_raise_value_error():
    with pytest.raises(ValueError, match="Could not restore"):
        _load_func_from_path({"module": __name__, "qualname": "missing"})
