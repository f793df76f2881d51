"""Per-transaction metrics for trend tracking."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from txlens.core.call_tree import CallNode

TOP_CONTRACTS_LIMIT = 10


@dataclass
class TrendMetrics:
    total_calls: int
    max_depth: int
    num_token_transfers: int
    num_findings: int
    top_contracts: List[str] = field(default_factory=list)
    total_gas_used: Optional[int] = None
    tx_hash: Optional[str] = None
    chain_id: Optional[int] = None
    timestamp_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.tx_hash is not None:
            result["txHash"] = self.tx_hash
        if self.chain_id is not None:
            result["chainId"] = self.chain_id
        if self.timestamp_ms is not None:
            result["timestampMs"] = self.timestamp_ms
        result.update({
            "totalCalls": self.total_calls,
            "maxDepth": self.max_depth,
            "numTokenTransfers": self.num_token_transfers,
            "numFindings": self.num_findings,
            "topContracts": list(self.top_contracts),
        })
        if self.total_gas_used is not None:
            result["totalGasUsed"] = self.total_gas_used
        return result


@dataclass
class TrendAggregate:
    count: int
    avg_calls: float
    avg_max_depth: float
    avg_findings: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avgCalls": self.avg_calls,
            "avgMaxDepth": self.avg_max_depth,
            "avgFindings": self.avg_findings,
        }


def compute_metrics(
    root: CallNode,
    flat: List[CallNode],
    transfers: List[Any],
    findings: List[Any],
    tx_hash: Optional[str] = None,
    chain_id: Optional[int] = None,
    timestamp_ms: Optional[int] = None,
) -> TrendMetrics:
    """
    Summarize one analysis run.

    ``top_contracts`` lists up to ten distinct callee addresses in call
    order, deduplicated case-insensitively and keeping the first spelling.
    """
    seen = {}
    for c in flat:
        if c.to and c.to.lower() not in seen:
            seen[c.to.lower()] = c.to

    return TrendMetrics(
        total_calls=len(flat),
        max_depth=max((c.depth for c in flat), default=0),
        total_gas_used=root.gas_used,
        num_token_transfers=len(transfers),
        num_findings=len(findings),
        top_contracts=list(seen.values())[:TOP_CONTRACTS_LIMIT],
        tx_hash=tx_hash,
        chain_id=chain_id,
        timestamp_ms=timestamp_ms,
    )


def aggregate_metrics(rows: List[TrendMetrics]) -> TrendAggregate:
    n = len(rows) or 1
    return TrendAggregate(
        count=len(rows),
        avg_calls=sum(r.total_calls for r in rows) / n,
        avg_max_depth=sum(r.max_depth for r in rows) / n,
        avg_findings=sum(r.num_findings for r in rows) / n,
    )
