"""
Gas profiling for a call tree.

Tracers report cumulative ``gasUsed`` per frame (the frame plus everything
it called). The profiler recovers per-frame self cost and totals the raw
gasUsed by contract and by function selector.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from txlens.core.call_tree import CallNode, iter_preorder
from txlens.utils.logging import get_logger

log = get_logger("core.gas_profiler")

SelectorOf = Callable[[CallNode], Optional[str]]


def default_selector_of(node: CallNode) -> Optional[str]:
    return node.selector


@dataclass
class GasBreakdown:
    """Gas attributed to one call frame."""
    call_id: str
    gas_used: int
    self_gas_used: int
    contract: Optional[str] = None
    selector: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "callId": self.call_id,
            "gasUsed": self.gas_used,
            "selfGasUsed": self.self_gas_used,
        }
        if self.contract is not None:
            result["contract"] = self.contract
        if self.selector is not None:
            result["selector"] = self.selector
        return result


@dataclass
class GasProfile:
    by_call: List[GasBreakdown] = field(default_factory=list)
    by_contract: List[Tuple[str, int]] = field(default_factory=list)
    by_selector: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def total_self_gas(self) -> int:
        return sum(b.self_gas_used for b in self.by_call)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byCall": [b.to_dict() for b in self.by_call],
            "byContract": [{"contract": c, "gasUsed": g} for c, g in self.by_contract],
            "bySelector": [{"selector": s, "gasUsed": g} for s, g in self.by_selector],
        }


def _rank(totals: Dict[str, int]) -> List[Tuple[str, int]]:
    # Stable: equal totals keep first-seen order
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)


def profile_gas(root: CallNode, selector_of: Optional[SelectorOf] = None) -> GasProfile:
    """
    Compute self gas per frame and the per-contract / per-selector gasUsed totals.

    ``self_gas_used`` is the frame's gasUsed minus the sum of its direct
    children's gasUsed (missing values count as 0). Some tracers report
    child gas that exceeds the parent's; when the subtraction goes
    negative the raw gasUsed is kept instead. The aggregates sum raw gasUsed,
    so a nested frame counts toward both its own contract and its caller's.

    Args:
        root: Root of the call tree
        selector_of: Maps a frame to its aggregation key; defaults to the
            calldata selector

    Returns:
        GasProfile with by_call in pre-order and both aggregates sorted by
        gas descending
    """
    selector_of = selector_of or default_selector_of

    by_call: List[GasBreakdown] = []
    by_contract: Dict[str, int] = {}
    by_selector: Dict[str, int] = {}
    clamped = 0

    for node in iter_preorder(root):
        gas_used = node.gas_used or 0
        children_gas = sum(c.gas_used or 0 for c in node.children)
        self_gas = gas_used - children_gas
        if self_gas < 0:
            self_gas = gas_used
            clamped += 1

        selector = selector_of(node)
        by_call.append(GasBreakdown(
            call_id=node.id,
            gas_used=gas_used,
            self_gas_used=self_gas,
            contract=node.to,
            selector=selector,
        ))
        if node.to:
            by_contract[node.to] = by_contract.get(node.to, 0) + gas_used
        if selector:
            by_selector[selector] = by_selector.get(selector, 0) + gas_used

    if clamped:
        log.debug(f"Clamped self gas on {clamped} frame(s) where children exceed parent gasUsed")

    return GasProfile(by_call=by_call, by_contract=_rank(by_contract), by_selector=_rank(by_selector))


@dataclass
class GasSuggestion:
    kind: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


def gas_heuristics(profile: GasProfile, top: int = 3) -> List[GasSuggestion]:
    """Summarize the most expensive contracts and selectors."""
    out = []
    if profile.by_contract:
        listed = ", ".join(f"{c}({g} gas)" for c, g in profile.by_contract[:top])
        out.append(GasSuggestion("TopGasContracts", f"Top gas contracts: {listed}"))
    if profile.by_selector:
        listed = ", ".join(f"{s}({g})" for s, g in profile.by_selector[:top])
        out.append(GasSuggestion("TopGasSelectors", f"Top gas selectors: {listed}"))
    return out


def compare_gas_profiles(a: GasProfile, b: GasProfile) -> List[Dict[str, Any]]:
    """
    Per-contract gasUsed difference between two runs.

    Returns:
        List of {"contract", "a", "b", "delta"} for every contract seen in
        either profile, sorted by delta (b - a) descending
    """
    map_a = dict(a.by_contract)
    map_b = dict(b.by_contract)
    keys = list(map_a) + [k for k in map_b if k not in map_a]
    rows = []
    for k in keys:
        va = map_a.get(k, 0)
        vb = map_b.get(k, 0)
        rows.append({"contract": k, "a": va, "b": vb, "delta": vb - va})
    rows.sort(key=lambda r: r["delta"], reverse=True)
    return rows
