"""
Balance and token attribution.

Native value moves are read from the call tree (``value`` of frames that
did not error); ERC-20 moves are read from receipt ``Transfer`` logs and
bound to call frames through log attribution. Both streams feed one ledger
keyed by (asset, address), which is emitted in a fixed order so that
identical input always produces identical output.

These numbers are estimates: gas fees, refunds and self-destruct
payouts are not visible in call values.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from txlens.config import ERC20_TRANSFER_TOPIC
from txlens.core.call_tree import CallNode, iter_preorder
from txlens.core.log_attribution import coerce_receipt_logs, match_receipt_logs_to_call_ids
from txlens.utils.helpers import (
    address_from_topic,
    hex_to_int,
    normalize_address,
    normalize_hex,
    parse_log_index,
)


# ============================================================================
# Assets and evidence
# ============================================================================

@dataclass(frozen=True)
class NativeAsset:
    chain_id: Optional[int] = None
    kind: str = "native"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind}
        if self.chain_id is not None:
            result["chainId"] = self.chain_id
        return result


@dataclass(frozen=True)
class Erc20Asset:
    token: str
    kind: str = "erc20"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "token": self.token}


AssetId = Union[NativeAsset, Erc20Asset]


@dataclass(frozen=True)
class CallValueEvidence:
    call_id: str
    type: str = "callValue"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "callId": self.call_id}


@dataclass(frozen=True)
class Erc20TransferEvidence:
    token: str
    log_index: Optional[int] = None
    call_id: Optional[str] = None
    type: str = "erc20Transfer"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type, "token": self.token}
        if self.log_index is not None:
            result["logIndex"] = self.log_index
        if self.call_id is not None:
            result["callId"] = self.call_id
        return result


EvidenceRef = Union[CallValueEvidence, Erc20TransferEvidence]


@dataclass
class AssetBalanceChange:
    asset: AssetId
    address: str
    delta: int
    evidence: List[EvidenceRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset.to_dict(),
            "address": self.address,
            "delta": self.delta,
            "evidence": [e.to_dict() for e in self.evidence],
        }


@dataclass
class BalanceChange:
    """Native-only balance change, kept for consumers of the older report shape."""
    address: str
    delta_wei: int

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "deltaWei": self.delta_wei}


@dataclass
class TokenTransfer:
    token: str
    from_addr: str
    to: str
    value: int
    log_index: Optional[int] = None
    call_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "token": self.token,
            "from": self.from_addr,
            "to": self.to,
            "value": self.value,
        }
        if self.log_index is not None:
            result["logIndex"] = self.log_index
        if self.call_id is not None:
            result["callId"] = self.call_id
        return result


@dataclass
class UnifiedAttribution:
    eth_balance_changes: List[BalanceChange]
    asset_deltas: List[AssetBalanceChange]


# ============================================================================
# ERC-20 transfers
# ============================================================================

def _parse_transfer(address: str, topics: List[str], data: str) -> Optional[Tuple[str, str, str, int]]:
    topics = [normalize_hex(t) for t in (topics or [])]
    if len(topics) < 3 or topics[0] != ERC20_TRANSFER_TOPIC:
        return None
    token = normalize_address(address)
    from_addr = address_from_topic(topics[1])
    to = address_from_topic(topics[2])
    amount = hex_to_int(data)
    # zero-amount and self transfers do not move balances
    if amount == 0 or from_addr == to:
        return None
    return token, from_addr, to, amount


def extract_token_transfers(receipt_logs: List[Any], trace_root: Optional[CallNode] = None) -> List[TokenTransfer]:
    """
    Extract ERC-20 Transfer events from receipt logs.

    ERC-721 transfers share topic-0 but carry the token id as a fourth topic
    and no data, so they come out with amount 0 and are skipped.

    Args:
        receipt_logs: Receipt logs (ReceiptLog objects or raw dicts)
        trace_root: When given, each transfer is bound to its emitting frame

    Returns:
        Transfers in receipt order
    """
    logs = coerce_receipt_logs(receipt_logs)
    call_ids = match_receipt_logs_to_call_ids(logs, trace_root) if trace_root is not None else {}

    transfers = []
    for i, rl in enumerate(logs):
        parsed = _parse_transfer(rl.address, rl.topics, rl.data)
        if parsed is None:
            continue
        token, from_addr, to, amount = parsed
        idx = parse_log_index(rl.log_index, i)
        transfers.append(TokenTransfer(token, from_addr, to, amount, log_index=idx, call_id=call_ids.get(idx)))
    return transfers


def extract_token_transfers_from_call_tree(root: CallNode) -> List[TokenTransfer]:
    """
    Best-effort transfer extraction from the logs attached to trace frames.

    Used when no receipt is available. Tracers may drop logs of reverted
    frames, so prefer ``extract_token_transfers`` whenever a receipt exists.
    """
    transfers = []
    for node in iter_preorder(root):
        for entry in node.logs:
            parsed = _parse_transfer(entry.address, entry.topics, entry.data)
            if parsed is None:
                continue
            token, from_addr, to, amount = parsed
            transfers.append(TokenTransfer(token, from_addr, to, amount, call_id=node.id))
    return transfers


# ============================================================================
# Ledger
# ============================================================================

def _sort_key(change: AssetBalanceChange) -> Tuple[int, str, str]:
    if isinstance(change.asset, NativeAsset):
        return (0, "", change.address)
    return (1, change.asset.token.lower(), change.address)


def attribute_balances(
    root: CallNode,
    token_transfers: Optional[List[TokenTransfer]] = None,
    chain_id: Optional[int] = None,
) -> UnifiedAttribution:
    """
    Compute per-address native and token deltas.

    Args:
        root: Root of the call tree
        token_transfers: ERC-20 transfers, usually from extract_token_transfers
        chain_id: Recorded on the native asset id when known

    Returns:
        UnifiedAttribution with the native-only list and the unified list,
        both without zero entries and in deterministic order
    """
    ledger: Dict[Tuple[str, str, str], AssetBalanceChange] = {}
    eth: Dict[str, int] = {}

    def add(asset: AssetId, address: str, delta: int, evidence: EvidenceRef) -> None:
        if delta == 0:
            return
        token = asset.token if isinstance(asset, Erc20Asset) else ""
        key = (asset.kind, token, address)
        entry = ledger.get(key)
        if entry is None:
            ledger[key] = AssetBalanceChange(asset, address, delta, [evidence])
        else:
            entry.delta += delta
            entry.evidence.append(evidence)

    native = NativeAsset(chain_id=chain_id)
    for node in iter_preorder(root):
        value = node.value or 0
        # Reverted frames keep their value in some tracers; it never moved
        if node.error or value <= 0 or not node.to:
            continue
        from_addr = normalize_address(node.from_addr)
        to = normalize_address(node.to)
        if from_addr == to:
            continue
        evidence = CallValueEvidence(node.id)
        add(native, from_addr, -value, evidence)
        add(native, to, value, evidence)
        eth[from_addr] = eth.get(from_addr, 0) - value
        eth[to] = eth.get(to, 0) + value

    for t in token_transfers or []:
        token = normalize_address(t.token)
        from_addr = normalize_address(t.from_addr)
        to = normalize_address(t.to)
        if t.value == 0 or from_addr == to:
            continue
        asset = Erc20Asset(token)
        evidence = Erc20TransferEvidence(token=token, log_index=t.log_index, call_id=t.call_id)
        add(asset, from_addr, -t.value, evidence)
        add(asset, to, t.value, evidence)

    eth_changes = [BalanceChange(a, d) for a, d in sorted(eth.items()) if d != 0]
    asset_deltas = sorted((c for c in ledger.values() if c.delta != 0), key=_sort_key)
    return UnifiedAttribution(eth_balance_changes=eth_changes, asset_deltas=asset_deltas)
