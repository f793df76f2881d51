from txlens.core.call_tree import build_call_tree
from txlens.core.log_attribution import (
    ReceiptLog,
    fingerprint_log,
    flatten_trace_logs,
    match_receipt_logs_to_call_ids,
)

from trace_factory import EOA, ROUTER, TOKEN, VAULT, frame, receipt_log, transfer_log


def duplicate_log_trace():
    # The same Transfer is emitted once by the root and once by a child frame
    dup = transfer_log(TOKEN, ROUTER, VAULT, 5)
    return frame(
        "CALL", EOA, ROUTER,
        logs=[dup],
        calls=[frame("CALL", ROUTER, TOKEN, logs=[dup, transfer_log(TOKEN, VAULT, EOA, 1)])],
    )


def test_flatten_is_preorder():
    tree = build_call_tree(duplicate_log_trace())
    flat = flatten_trace_logs(tree.root)

    assert [(l.call_id, l.seq) for l in flat] == [("c0", 0), ("c1", 1), ("c1", 2)]


def test_duplicates_are_assigned_in_order():
    tree = build_call_tree(duplicate_log_trace())
    dup = transfer_log(TOKEN, ROUTER, VAULT, 5)
    logs = [receipt_log(dup, 0), receipt_log(dup, 1), receipt_log(transfer_log(TOKEN, VAULT, EOA, 1), 2)]

    assert match_receipt_logs_to_call_ids(logs, tree.root) == {0: "c0", 1: "c1", 2: "c1"}


def test_receipt_order_is_by_log_index_not_list_order():
    tree = build_call_tree(duplicate_log_trace())
    dup = transfer_log(TOKEN, ROUTER, VAULT, 5)
    logs = [receipt_log(dup, 1), receipt_log(dup, 0)]

    assert match_receipt_logs_to_call_ids(logs, tree.root) == {0: "c0", 1: "c1"}


def test_falls_back_to_any_unconsumed_candidate():
    # Receipt order disagrees with trace order: the second receipt log can
    # only match a trace log that comes before the last match
    a = transfer_log(TOKEN, ROUTER, VAULT, 1)
    b = transfer_log(TOKEN, ROUTER, VAULT, 2)
    tree = build_call_tree(frame("CALL", EOA, ROUTER, logs=[a], calls=[frame("CALL", ROUTER, TOKEN, logs=[b])]))

    result = match_receipt_logs_to_call_ids([receipt_log(b, 0), receipt_log(a, 1)], tree.root)

    assert result == {0: "c1", 1: "c0"}


def test_unmatched_logs_are_left_out():
    tree = build_call_tree(duplicate_log_trace())
    stray = receipt_log(transfer_log(VAULT, EOA, ROUTER, 9), 7)

    assert match_receipt_logs_to_call_ids([stray], tree.root) == {}


def test_trace_logs_are_used_at_most_once():
    dup = transfer_log(TOKEN, ROUTER, VAULT, 5)
    tree = build_call_tree(frame("CALL", EOA, ROUTER, logs=[dup]))

    result = match_receipt_logs_to_call_ids([receipt_log(dup, 0), receipt_log(dup, 1)], tree.root)

    assert result == {0: "c0"}


def test_fingerprint_ignores_case_and_missing_prefix():
    upper = fingerprint_log(TOKEN.upper().replace("0X", "0x"), ["0xABCD"], "0xFF")
    lower = fingerprint_log(TOKEN, ["abcd"], "ff")
    assert upper == lower


def test_receipt_log_from_dict():
    entry = ReceiptLog.from_dict({"address": "0xAbC", "topics": ["0xDEAD"], "data": "0xBEEF", "logIndex": "0x3"})

    assert entry.address == "0xabc"
    assert entry.topics == ["0xdead"]
    assert entry.data == "0xbeef"
    assert entry.log_index == "0x3"
