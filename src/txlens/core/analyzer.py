"""
Transaction analysis pipeline.

``TransactionAnalyzer`` wires the providers to the analysis stages:
trace and receipt are fetched concurrently, then the call tree is built and
log attribution, balance attribution, gas profiling, graph building, the
rule engine and report assembly run in that order.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from txlens.core.attribution import (
    TokenTransfer,
    extract_token_transfers,
    extract_token_transfers_from_call_tree,
)
from txlens.core.call_tree import CallNode, CallTree, build_call_tree
from txlens.core.explain import build_explanations
from txlens.core.gas_profiler import profile_gas
from txlens.core.interaction_graph import build_interaction_graph
from txlens.core.report import AnalysisReport, build_report
from txlens.core.storage_diff import try_get_storage_diff
from txlens.core.trends import compute_metrics
from txlens.parsers.trace import NormalizedTrace, TraceFlavor
from txlens.utils.logging import get_logger, log_duration
from txlens.vuln.engine import VulnEngine
from txlens.vuln.external import merge_findings
from txlens.vuln.types import Finding, Rule

log = get_logger("core.analyzer")


class SignatureResolver:
    """
    Selector to signature resolution over several sources, first hit wins.

    Sources are anything with ``lookup_selector(selector)``. Results, misses
    included, are memoized for the lifetime of the resolver.
    """

    def __init__(self, sources: List[Any]):
        self.sources = [s for s in sources if s is not None]
        self._memo: Dict[str, Optional[str]] = {}

    def lookup_selector(self, selector: str) -> Optional[str]:
        if selector in self._memo:
            return self._memo[selector]
        found = None
        for source in self.sources:
            try:
                found = source.lookup_selector(selector)
            except Exception as e:
                log.debug(f"Signature lookup failed for {selector}: {e}")
                continue
            if found:
                break
        self._memo[selector] = found or None
        return self._memo[selector]

    def signature_of(self, node: CallNode) -> Optional[str]:
        return self.lookup_selector(node.selector) if node.selector else None


class TransactionAnalyzer:
    """
    Analyze transactions end to end.

    Args:
        trace_provider: Object with ``trace_transaction(tx_hash)``
        receipt_provider: Object with ``get_transaction_receipt(tx_hash)``;
            without it token transfers come from trace logs
        signature_lookup: Optional ``lookup_selector(selector)`` source,
            used for explanations and the access-control rule
        abi_decoder: Optional local ABI decoder, consulted before
            ``signature_lookup``
        storage_diff_provider: Optional ``get_storage_diff(tx_hash)`` source
        rules: Rule list for the engine; the built-in set when omitted
        chain_id: Chain id recorded in reports

    Example:
        >>> analyzer = TransactionAnalyzer(tracer, receipts, chain_id=1)
        >>> report = analyzer.analyze("0x...")
    """

    def __init__(
        self,
        trace_provider,
        receipt_provider=None,
        signature_lookup=None,
        abi_decoder=None,
        storage_diff_provider=None,
        rules: Optional[List[Rule]] = None,
        chain_id: Optional[int] = None,
    ):
        self.trace_provider = trace_provider
        self.receipt_provider = receipt_provider
        self.signature_lookup = signature_lookup
        self.abi_decoder = abi_decoder
        self.storage_diff_provider = storage_diff_provider
        self.engine = VulnEngine(rules)
        self.chain_id = chain_id

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _fetch_trace(self, tx_hash: str) -> NormalizedTrace:
        tx = None
        wants_tx = getattr(self.trace_provider, "flavor", None) == TraceFlavor.STRUCT_LOGS
        if wants_tx and hasattr(self.receipt_provider, "get_transaction"):
            tx = self.receipt_provider.get_transaction(tx_hash)
            return self.trace_provider.trace_transaction(tx_hash, tx=tx)
        return self.trace_provider.trace_transaction(tx_hash)

    def fetch(self, tx_hash: str):
        """
        Fetch trace and receipt concurrently.

        Returns:
            (NormalizedTrace, receipt or None)

        Raises:
            Whatever the providers raise; a failed fetch is fatal.
        """
        if self.receipt_provider is None:
            return self._fetch_trace(tx_hash), None

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="txlens-fetch") as pool:
            trace_future = pool.submit(self._fetch_trace, tx_hash)
            receipt_future = pool.submit(self.receipt_provider.get_transaction_receipt, tx_hash)
            return trace_future.result(), receipt_future.result()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def analyze_trace(
        self,
        trace: Any,
        receipt: Any = None,
        tx_hash: Optional[str] = None,
        include_debug_tree: bool = False,
        explain: bool = True,
        extra_findings: Optional[List[Finding]] = None,
    ) -> AnalysisReport:
        """
        Run every analysis stage on already fetched data.

        Args:
            trace: NormalizedTrace or raw tracer dict
            receipt: Receipt object with ``logs``, a raw receipt dict, or None
            tx_hash: Transaction hash for the report
            include_debug_tree: Embed the call tree in the report
            explain: Build explanations and resolve signatures over the network
            extra_findings: Findings from external tools to merge in

        Returns:
            AnalysisReport
        """
        with log_duration(log, "call tree"):
            tree: CallTree = build_call_tree(trace)
        log.debug(f"Built call tree: {len(tree.flat)} call(s), max depth {tree.max_depth}")

        receipt_logs = None
        if receipt is not None:
            receipt_logs = receipt.get("logs", []) if isinstance(receipt, dict) else receipt.logs

        if receipt_logs is not None:
            transfers: List[TokenTransfer] = extract_token_transfers(receipt_logs, trace_root=tree.root)
        else:
            transfers = extract_token_transfers_from_call_tree(tree.root)

        resolver = SignatureResolver([self.abi_decoder, self.signature_lookup if explain else None])

        gas = profile_gas(tree.root)
        graph = build_interaction_graph(tree.root, lambda c: resolver.signature_of(c) or c.selector)
        with log_duration(log, "rules"):
            findings = self.engine.run(tree.root, tree.flat, selector_of=lambda c: c.selector, signature_of=resolver.signature_of)
        if extra_findings:
            findings = merge_findings(findings, extra_findings)

        explanations = None
        if explain:
            explanations = build_explanations(tree, transfers, signature_lookup=resolver)

        storage_diff = try_get_storage_diff(self.storage_diff_provider, tx_hash) if tx_hash else None

        trends = compute_metrics(
            tree.root, tree.flat, transfers, findings,
            tx_hash=tx_hash,
            chain_id=self.chain_id,
            timestamp_ms=int(time.time() * 1000),
        )

        return build_report(
            tree,
            gas=gas,
            token_transfers=transfers,
            storage_diff=storage_diff,
            findings=findings,
            graph=graph,
            trends=trends,
            chain_id=self.chain_id,
            tx_hash=tx_hash,
            include_debug_tree=include_debug_tree,
            explanations=explanations,
        )

    def analyze(
        self,
        tx_hash: str,
        include_debug_tree: bool = False,
        explain: bool = True,
        extra_findings: Optional[List[Finding]] = None,
    ) -> AnalysisReport:
        """Fetch and analyze a mined transaction."""
        with log_duration(log, f"fetch {tx_hash}"):
            trace, receipt = self.fetch(tx_hash)
        return self.analyze_trace(
            trace,
            receipt,
            tx_hash=tx_hash,
            include_debug_tree=include_debug_tree,
            explain=explain,
            extra_findings=extra_findings,
        )

