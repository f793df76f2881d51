from txlens.core.call_tree import build_call_tree
from txlens.core.interaction_graph import build_interaction_graph, circle_layout

from trace_factory import DEPOSIT, EOA, ROUTER, TOKEN, VAULT, WITHDRAW, frame


def graph_trace():
    return frame(
        "CALL", EOA, ROUTER, input=WITHDRAW,
        calls=[
            frame("CALL", ROUTER, VAULT, input=DEPOSIT),
            frame("CALL", ROUTER, VAULT, input=DEPOSIT),
            frame("CALL", ROUTER, VAULT, input=WITHDRAW),
            frame("CALL", VAULT, TOKEN),
            frame("CREATE", ROUTER, None),
        ],
    )


def test_nodes_keep_first_seen_kind():
    # ROUTER and VAULT also make calls but were first seen as callees
    graph = build_interaction_graph(build_call_tree(graph_trace()).root)
    kinds = {n.id: n.kind for n in graph.nodes}

    assert kinds == {EOA: "EOA", ROUTER: "CONTRACT", VAULT: "CONTRACT", TOKEN: "CONTRACT"}
    assert [n.id for n in graph.nodes] == [EOA, ROUTER, VAULT, TOKEN]


def test_parallel_edges_collapse_per_label():
    graph = build_interaction_graph(build_call_tree(graph_trace()).root, label_of=lambda c: c.selector)
    edges = {e.id: e.weight for e in graph.edges}

    assert edges == {
        f"{EOA}->{ROUTER}:{WITHDRAW}": 1,
        f"{ROUTER}->{VAULT}:{DEPOSIT}": 2,
        f"{ROUTER}->{VAULT}:{WITHDRAW}": 1,
        f"{VAULT}->{TOKEN}:": 1,
    }


def test_unlabelled_edges_merge():
    graph = build_interaction_graph(build_call_tree(graph_trace()).root)
    edges = {e.id: e.weight for e in graph.edges}

    assert edges[f"{ROUTER}->{VAULT}:"] == 3


def test_to_dict_and_layout():
    graph = build_interaction_graph(build_call_tree(graph_trace()).root)
    data = graph.to_dict()

    assert data["edges"][0]["from"] == EOA
    assert data["edges"][0]["to"] == ROUTER
    assert "label" not in data["edges"][0]

    positions = circle_layout(graph)
    assert len(positions) == 4
    assert positions[0] == {"id": EOA, "x": 150.0, "y": 0.0}


def test_address_first_seen_as_caller_is_eoa():
    raw = frame("CALL", VAULT, TOKEN, calls=[frame("CALL", TOKEN, VAULT)])
    graph = build_interaction_graph(build_call_tree(raw).root)

    assert {n.id: n.kind for n in graph.nodes} == {VAULT: "EOA", TOKEN: "CONTRACT"}
