"""
Analysis report assembly.

``build_report`` collects the outputs of the analysis stages into one
``AnalysisReport``. Balance sections are derived here when the caller did
not supply them; a failure while deriving them leaves those sections out
rather than failing the whole report.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from txlens.config import CORE_VERSION, network_by_chain_id
from txlens.core.attribution import (
    AssetBalanceChange,
    BalanceChange,
    TokenTransfer,
    attribute_balances,
)
from txlens.core.call_tree import CallNode, CallTree
from txlens.core.explain import ReportExplanations
from txlens.core.gas_profiler import GasProfile
from txlens.core.interaction_graph import InteractionGraph
from txlens.core.storage_diff import StorageDiffItem
from txlens.core.trends import TrendMetrics
from txlens.utils.logging import get_logger
from txlens.vuln.types import Finding

log = get_logger("core.report")


@dataclass
class ReportMeta:
    created_at_ms: int
    core_version: str = CORE_VERSION
    chain_id: Optional[int] = None
    tx_hash: Optional[str] = None
    network: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.chain_id is not None:
            result["chainId"] = self.chain_id
        if self.tx_hash is not None:
            result["txHash"] = self.tx_hash
        result["createdAtMs"] = self.created_at_ms
        result["coreVersion"] = self.core_version
        if self.network is not None:
            result["network"] = self.network
        return result


@dataclass
class TraceSummary:
    root_id: str
    total_calls: int
    max_depth: int

    def to_dict(self) -> Dict[str, Any]:
        return {"rootId": self.root_id, "totalCalls": self.total_calls, "maxDepth": self.max_depth}


@dataclass
class StateSection:
    token_transfers: List[TokenTransfer] = field(default_factory=list)
    balance_changes: Optional[List[BalanceChange]] = None
    asset_deltas: Optional[List[AssetBalanceChange]] = None
    storage_diff: Optional[List[StorageDiffItem]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"tokenTransfers": [t.to_dict() for t in self.token_transfers]}
        if self.balance_changes is not None:
            result["balanceChanges"] = [b.to_dict() for b in self.balance_changes]
        if self.asset_deltas is not None:
            result["assetDeltas"] = [a.to_dict() for a in self.asset_deltas]
        if self.storage_diff is not None:
            result["storageDiff"] = [s.to_dict() for s in self.storage_diff]
        return result


@dataclass
class DebugSection:
    call_tree: Optional[CallNode] = None
    explanations: Optional[ReportExplanations] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.call_tree is not None:
            result["callTree"] = self.call_tree.to_dict()
        if self.explanations is not None:
            result["explanations"] = self.explanations.to_dict()
        return result


@dataclass
class AnalysisReport:
    meta: ReportMeta
    trace: TraceSummary
    state: StateSection
    findings: List[Finding] = field(default_factory=list)
    gas: Optional[GasProfile] = None
    graph: Optional[InteractionGraph] = None
    trends: Optional[TrendMetrics] = None
    debug: Optional[DebugSection] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with camelCase keys; integers are left as ints."""
        result: Dict[str, Any] = {
            "meta": self.meta.to_dict(),
            "trace": self.trace.to_dict(),
        }
        if self.gas is not None:
            result["gas"] = self.gas.to_dict()
        result["state"] = self.state.to_dict()
        result["vuln"] = {"findings": [f.to_dict() for f in self.findings]}
        if self.graph is not None:
            result["graph"] = self.graph.to_dict()
        if self.trends is not None:
            result["trends"] = self.trends.to_dict()
        if self.debug is not None:
            result["debug"] = self.debug.to_dict()
        return result


def _network_name(chain_id: Optional[int]) -> Optional[str]:
    net = network_by_chain_id(chain_id)
    return net.name if net else None


def build_report(
    trace: CallTree,
    gas: Optional[GasProfile] = None,
    token_transfers: Optional[List[TokenTransfer]] = None,
    balance_changes: Optional[List[BalanceChange]] = None,
    asset_deltas: Optional[List[AssetBalanceChange]] = None,
    storage_diff: Optional[List[StorageDiffItem]] = None,
    findings: Optional[List[Finding]] = None,
    graph: Optional[InteractionGraph] = None,
    trends: Optional[TrendMetrics] = None,
    chain_id: Optional[int] = None,
    tx_hash: Optional[str] = None,
    include_debug_tree: bool = False,
    explanations: Optional[ReportExplanations] = None,
) -> AnalysisReport:
    """
    Assemble an AnalysisReport.

    Args:
        trace: Call tree of the transaction
        gas: Gas profile, if computed
        token_transfers: ERC-20 transfers (empty when omitted)
        balance_changes: Precomputed native balance changes; takes precedence
        asset_deltas: Precomputed unified deltas; takes precedence
        storage_diff: Storage slot changes from an external provider
        findings: Vulnerability findings
        graph: Interaction graph
        trends: Trend metrics
        chain_id: Chain the transaction ran on
        tx_hash: Transaction hash
        include_debug_tree: Embed the full call tree (large)
        explanations: Human-readable explanations

    Returns:
        AnalysisReport
    """
    transfers = list(token_transfers or [])

    if balance_changes is not None or asset_deltas is not None:
        eth_changes, deltas = balance_changes, asset_deltas
    else:
        try:
            unified = attribute_balances(trace.root, transfers, chain_id=chain_id)
            eth_changes, deltas = unified.eth_balance_changes, unified.asset_deltas
        except Exception as e:
            log.warning(f"Balance attribution failed, omitting balance sections: {e}")
            eth_changes, deltas = None, None

    debug = None
    if include_debug_tree or explanations is not None:
        debug = DebugSection(
            call_tree=trace.root if include_debug_tree else None,
            explanations=explanations,
        )

    return AnalysisReport(
        meta=ReportMeta(
            created_at_ms=int(time.time() * 1000),
            chain_id=chain_id,
            tx_hash=tx_hash,
            network=_network_name(chain_id),
        ),
        trace=TraceSummary(
            root_id=trace.root.id,
            total_calls=len(trace.flat),
            max_depth=trace.max_depth,
        ),
        gas=gas,
        state=StateSection(
            token_transfers=transfers,
            balance_changes=eth_changes,
            asset_deltas=deltas,
            storage_diff=storage_diff,
        ),
        findings=list(findings or []),
        graph=graph,
        trends=trends,
        debug=debug,
    )
