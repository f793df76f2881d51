import pytest

from txlens.core.call_tree import CallType, build_call_tree, iter_preorder
from txlens.parsers.trace import TraceFlavor, detect_flavor, normalize_trace
from txlens.utils.exceptions import TraceFormatError

from trace_factory import EOA, ROUTER, TOKEN, VAULT, frame


def nested_trace():
    return frame(
        "CALL", EOA, ROUTER, input="0xAABBCCDD" + "00" * 4, value=16, gas_used=100,
        calls=[
            frame("STATICCALL", ROUTER, TOKEN, gas_used=10,
                  calls=[frame("CALL", TOKEN, VAULT, gas_used=5)]),
            frame("delegatecall", ROUTER, VAULT, gas_used=20),
        ],
    )


def test_ids_follow_preorder():
    tree = build_call_tree(nested_trace())

    assert [c.id for c in tree.flat] == ["c0", "c1", "c2", "c3"]
    assert [c.to for c in tree.flat] == [ROUTER, TOKEN, VAULT, VAULT]
    assert list(iter_preorder(tree.root)) == tree.flat


def test_depth_and_parent_links():
    tree = build_call_tree(nested_trace())
    by_id = tree.by_id()

    assert tree.root.depth == 0
    assert tree.root.parent_id is None
    for node in tree.flat[1:]:
        parent = by_id[node.parent_id]
        assert node.depth == parent.depth + 1
        assert node in parent.children
    assert tree.max_depth == 2


def test_quantities_and_selector():
    tree = build_call_tree(nested_trace())
    root = tree.root

    assert root.value == 16
    assert root.gas_used == 100
    assert root.selector == "0xaabbccdd"
    assert tree.flat[3].type == CallType.DELEGATECALL
    assert tree.flat[1].selector is None


def test_malformed_frames_degrade():
    raw = {
        "type": "BOGUS",
        "from": EOA,
        "to": ROUTER,
        "value": "not-a-number",
        "gasUsed": "0xzz",
        "calls": ["garbage", {"type": "CALL"}],
    }
    tree = build_call_tree(raw)

    assert tree.root.type == CallType.CALL
    assert tree.root.value is None
    assert tree.root.gas_used is None
    assert len(tree.flat) == 3
    assert tree.flat[1].from_addr == ""
    assert tree.flat[1].to is None


def test_deep_trace_does_not_recurse():
    raw = frame("CALL", EOA, ROUTER)
    cur = raw
    for _ in range(1500):
        child = frame("CALL", ROUTER, ROUTER)
        cur["calls"] = [child]
        cur = child

    tree = build_call_tree(raw)

    assert len(tree.flat) == 1501
    assert tree.max_depth == 1500
    assert tree.flat[-1].id == "c1500"


def test_detect_flavor():
    assert detect_flavor({"structLogs": [], "gas": 21000}) == TraceFlavor.STRUCT_LOGS
    assert detect_flavor(nested_trace()) == TraceFlavor.CALL_TRACER
    with pytest.raises(TraceFormatError):
        detect_flavor({"unexpected": True})


def test_flavor_aliases():
    assert TraceFlavor.parse("callTracer") == TraceFlavor.CALL_TRACER
    assert TraceFlavor.parse("structLogs") == TraceFlavor.STRUCT_LOGS
    with pytest.raises(ValueError):
        TraceFlavor.parse("prestateTracer")


def test_struct_logs_uses_transaction_fields():
    raw = {"gas": 53000, "failed": True, "returnValue": "08c379a0", "structLogs": []}
    tx = {"from": EOA, "to": VAULT, "input": "0xd0e30db0", "value": "0x5"}

    trace = normalize_trace(raw, TraceFlavor.STRUCT_LOGS, tx=tx)
    tree = build_call_tree(trace)

    assert tree.root.to == VAULT
    assert tree.root.value == 5
    assert tree.root.gas_used == 53000
    assert tree.root.error == "execution reverted"
    assert tree.root.output == "0x08c379a0"
    assert tree.root.children == []


def test_addresses_are_lowercased():
    tree = build_call_tree(frame("CALL", EOA.upper().replace("0X", "0x"), "0xABCDEF0000000000000000000000000000000001"))
    assert tree.root.to == "0xabcdef0000000000000000000000000000000001"
    assert tree.root.from_addr == EOA
