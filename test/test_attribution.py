from collections import defaultdict

from txlens.core.attribution import (
    CallValueEvidence,
    Erc20Asset,
    Erc20TransferEvidence,
    NativeAsset,
    TokenTransfer,
    attribute_balances,
    extract_token_transfers,
    extract_token_transfers_from_call_tree,
)
from txlens.core.call_tree import build_call_tree
from txlens.config import ERC20_TRANSFER_TOPIC

from trace_factory import (
    ATTACKER,
    EOA,
    OTHER_TOKEN,
    ROUTER,
    TOKEN,
    VAULT,
    frame,
    receipt_log,
    topic_for,
    transfer_log,
)


def swap_trace():
    return frame(
        "CALL", EOA, ROUTER, value=100,
        calls=[
            frame("CALL", ROUTER, VAULT, value=60,
                  logs=[transfer_log(TOKEN, VAULT, EOA, 500)]),
            frame("CALL", ROUTER, ATTACKER, value=40, error="execution reverted"),
            frame("CALL", ROUTER, ROUTER, value=7),
        ],
    )


def test_native_deltas_skip_errored_and_self_calls():
    tree = build_call_tree(swap_trace())
    result = attribute_balances(tree.root, chain_id=1)

    deltas = {c.address: c.delta_wei for c in result.eth_balance_changes}
    assert deltas == {EOA: -100, ROUTER: 40, VAULT: 60}
    assert all(c.address != ATTACKER for c in result.asset_deltas)


def test_conservation_per_asset():
    tree = build_call_tree(swap_trace())
    logs = [receipt_log(transfer_log(TOKEN, VAULT, EOA, 500), 0),
            receipt_log(transfer_log(OTHER_TOKEN, EOA, ROUTER, 3), 1)]
    transfers = extract_token_transfers(logs, trace_root=tree.root)

    result = attribute_balances(tree.root, transfers)

    totals = defaultdict(int)
    for change in result.asset_deltas:
        assert change.delta != 0
        totals[change.asset] += change.delta
    assert set(totals.values()) == {0}


def test_unified_order_is_native_then_token_then_address():
    tree = build_call_tree(swap_trace())
    transfers = [
        TokenTransfer(OTHER_TOKEN, EOA, ROUTER, 3, log_index=1),
        TokenTransfer(TOKEN, VAULT, EOA, 500, log_index=0),
    ]

    result = attribute_balances(tree.root, transfers, chain_id=1)
    keys = [
        (c.asset.kind, getattr(c.asset, "token", ""), c.address)
        for c in result.asset_deltas
    ]

    assert keys == [
        ("native", "", ROUTER),
        ("native", "", VAULT),
        ("native", "", EOA),
        ("erc20", TOKEN, VAULT),
        ("erc20", TOKEN, EOA),
        ("erc20", OTHER_TOKEN, ROUTER),
        ("erc20", OTHER_TOKEN, EOA),
    ]
    assert result.asset_deltas[0].asset == NativeAsset(chain_id=1)


def test_evidence_points_at_frames_and_logs():
    tree = build_call_tree(swap_trace())
    logs = [receipt_log(transfer_log(TOKEN, VAULT, EOA, 500), 4)]
    transfers = extract_token_transfers(logs, trace_root=tree.root)

    result = attribute_balances(tree.root, transfers)
    by_key = {(c.asset.kind, c.address): c for c in result.asset_deltas}

    assert by_key[("native", VAULT)].evidence == [CallValueEvidence("c1")]
    assert by_key[("erc20", EOA)].evidence == [Erc20TransferEvidence(token=TOKEN, log_index=4, call_id="c1")]
    assert by_key[("erc20", EOA)].asset == Erc20Asset(TOKEN)


def test_zero_net_entries_are_dropped():
    tree = build_call_tree(frame("CALL", EOA, ROUTER))
    transfers = [
        TokenTransfer(TOKEN, EOA, ROUTER, 10),
        TokenTransfer(TOKEN, ROUTER, EOA, 10),
    ]

    assert attribute_balances(tree.root, transfers).asset_deltas == []


def test_extract_skips_non_transfers_and_zero_amounts():
    logs = [
        receipt_log(transfer_log(TOKEN, EOA, ROUTER, 0), 0),
        receipt_log({"address": TOKEN, "topics": ["0x" + "11" * 32], "data": "0x"}, 1),
        # ERC-721 style: token id as fourth topic, no data
        receipt_log({"address": TOKEN, "topics": [ERC20_TRANSFER_TOPIC, topic_for(EOA), topic_for(ROUTER), "0x" + "00" * 31 + "01"], "data": "0x"}, 2),
        receipt_log(transfer_log(TOKEN, EOA, ROUTER, 2 ** 200), 3),
    ]

    transfers = extract_token_transfers(logs)

    assert len(transfers) == 1
    assert transfers[0].value == 2 ** 200
    assert transfers[0].log_index == 3
    assert transfers[0].call_id is None


def test_extract_from_call_tree_without_receipt():
    tree = build_call_tree(swap_trace())

    transfers = extract_token_transfers_from_call_tree(tree.root)

    assert [(t.token, t.from_addr, t.to, t.value, t.call_id) for t in transfers] == [
        (TOKEN, VAULT, EOA, 500, "c1"),
    ]


def test_extract_tolerates_malformed_receipt_logs():
    tree = build_call_tree(swap_trace())
    logs = [
        None,
        "0xdead",
        {"address": TOKEN, "topics": 5, "data": "0x"},
        {"address": None, "topics": None, "data": None},
        receipt_log(transfer_log(TOKEN, VAULT, EOA, 500), 4),
    ]

    transfers = extract_token_transfers(logs, trace_root=tree.root)

    assert [(t.value, t.log_index, t.call_id) for t in transfers] == [(500, 4, "c1")]
    assert extract_token_transfers(7) == []
