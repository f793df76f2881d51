"""
Core module for txlens.

This module contains the analysis pipeline:
- build_call_tree: normalized trace -> CallTree
- match_receipt_logs_to_call_ids: receipt logs -> emitting call frames
- attribute_balances: native and ERC-20 deltas per address
- profile_gas: self gas per frame, gasUsed per contract and selector
- build_interaction_graph: who-called-whom graph
- build_report / ReportSerializer: report assembly and JSON output
- TransactionAnalyzer: providers + every stage above
"""

from .call_tree import CallNode, CallTree, CallType, TraceLog, build_call_tree, iter_preorder
from .log_attribution import (
    ReceiptLog,
    fingerprint_log,
    flatten_trace_logs,
    match_receipt_logs_to_call_ids,
)
from .attribution import (
    AssetBalanceChange,
    BalanceChange,
    CallValueEvidence,
    Erc20Asset,
    Erc20TransferEvidence,
    NativeAsset,
    TokenTransfer,
    UnifiedAttribution,
    attribute_balances,
    extract_token_transfers,
    extract_token_transfers_from_call_tree,
)
from .gas_profiler import GasBreakdown, GasProfile, compare_gas_profiles, gas_heuristics, profile_gas
from .interaction_graph import InteractionGraph, build_interaction_graph, circle_layout
from .storage_diff import StorageDiffItem, try_get_storage_diff
from .explain import ReportExplanations, build_explanations
from .trends import TrendMetrics, aggregate_metrics, compute_metrics
from .report import AnalysisReport, build_report
from .serializer import ReportSerializer
from .analyzer import SignatureResolver, TransactionAnalyzer

__all__ = [
    'CallNode',
    'CallTree',
    'CallType',
    'TraceLog',
    'build_call_tree',
    'iter_preorder',
    'ReceiptLog',
    'fingerprint_log',
    'flatten_trace_logs',
    'match_receipt_logs_to_call_ids',
    'AssetBalanceChange',
    'BalanceChange',
    'CallValueEvidence',
    'Erc20Asset',
    'Erc20TransferEvidence',
    'NativeAsset',
    'TokenTransfer',
    'UnifiedAttribution',
    'attribute_balances',
    'extract_token_transfers',
    'extract_token_transfers_from_call_tree',
    'GasBreakdown',
    'GasProfile',
    'compare_gas_profiles',
    'gas_heuristics',
    'profile_gas',
    'InteractionGraph',
    'build_interaction_graph',
    'circle_layout',
    'StorageDiffItem',
    'try_get_storage_diff',
    'ReportExplanations',
    'build_explanations',
    'TrendMetrics',
    'aggregate_metrics',
    'compute_metrics',
    'AnalysisReport',
    'build_report',
    'ReportSerializer',
    'SignatureResolver',
    'TransactionAnalyzer',
]
