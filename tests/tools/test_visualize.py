import deferflow as df
from deferflow.graph.build import build_graph


@df.task
def load(path):
    return path


@df.task
def merge(a, b):
    return [a, b]


def test_visualize_diamond_graph():
    source = df.delayed("raw.csv", name="source")
    workflow = merge(load(source), load(source))

    dot_string = df.visualize(workflow)

    assert dot_string.startswith("digraph DeferflowWorkflow {")
    assert dot_string.endswith("}")

    # Node ids are assigned in pre-order from the root
    assert '"0" [label="merge\\n#0 (Waiting)", shape=doubleoctagon' in dot_string
    assert '"1" [label="load\\n#1 (Waiting)", shape=box' in dot_string
    assert '"2" [label="source\\n#2 (Ready)", shape=ellipse, fillcolor=lightyellow' in dot_string

    assert '"1" -> "0" [label="0"];' in dot_string
    assert '"2" -> "1" [label="0"];' in dot_string
    assert '"2" -> "3" [label="0"];' in dot_string
    assert '"3" -> "0" [label="1"];' in dot_string


def test_visualize_reflects_run_state():
    graph = build_graph(load(df.delayed("x", name="leaf")))
    df.compute(graph)

    dot_string = df.visualize(graph)

    assert "(Resolved)" in dot_string
    assert "fillcolor=palegreen" in dot_string
    assert "(Waiting)" not in dot_string


def test_visualize_escapes_quotes_in_names():
    quoted = df.task(name='say "hi"')(lambda: "hi")
    dot_string = df.visualize(quoted())

    assert 'label="say \\"hi\\"\\n#0 (Ready)"' in dot_string
