"""
Analyze command implementation.

``analyze`` fetches a mined transaction over JSON-RPC; ``analyze-file``
runs the same pipeline on tracer and receipt output saved to disk.
Both print the report as JSON on stdout (or to ``--output``).
"""

import sys
from typing import Any, List, Optional

from txlens.cli.common import (
    build_settings,
    configure_logging,
    create_providers,
    handle_command_error,
    load_abi_decoder,
    load_json_file,
    load_slither_findings,
    print_connection_info,
    unwrap_rpc_result,
    write_output,
)
from txlens.cli.output import print_report_summary
from txlens.core.analyzer import TransactionAnalyzer
from txlens.core.report import AnalysisReport
from txlens.core.serializer import ReportSerializer
from txlens.parsers.trace import TraceFlavor, normalize_trace
from txlens.providers.cache import Cache
from txlens.providers.receipt import TxReceipt
from txlens.providers.signatures import SignatureLookup
from txlens.utils.logging import logger


def _parse_flavor(name: Optional[str]) -> Optional[TraceFlavor]:
    return TraceFlavor.parse(name) if name else None


def _emit(report: AnalysisReport, args: Any) -> None:
    text = ReportSerializer().to_json(report, pretty=not getattr(args, 'compact', False))
    write_output(text, getattr(args, 'output', None))
    if getattr(args, 'pretty', False):
        print_report_summary(report, stream=sys.stderr)


def analyze_command(args) -> int:
    """
    Execute the analyze command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    configure_logging(args)
    try:
        settings = build_settings(args)
        flavor = _parse_flavor(args.flavor) or TraceFlavor.CALL_TRACER
        print_connection_info(settings.rpc_url, quiet=not args.pretty)

        tracer, receipts, cache = create_providers(settings, flavor)
        abi_decoder = load_abi_decoder(args.abi)
        signatures = None if args.no_explain else SignatureLookup(cache=cache)
        extra: List = load_slither_findings(args.slither_json)

        analyzer = TransactionAnalyzer(
            tracer,
            receipt_provider=receipts,
            signature_lookup=signatures,
            abi_decoder=abi_decoder,
            chain_id=settings.chain_id,
        )
        report = analyzer.analyze(
            args.tx_hash,
            include_debug_tree=args.include_debug,
            explain=not args.no_explain,
            extra_findings=extra,
        )
        _emit(report, args)
    except Exception as e:
        logger.debug("analyze failed", exc_info=True)
        return handle_command_error(e, json_mode=True)

    return 0


def analyze_file_command(args) -> int:
    """
    Execute the analyze-file command.

    The trace file may hold raw callTracer or structLogs output, or a full
    JSON-RPC response wrapping it. Signatures are resolved from ``--abi``
    files only, unless ``--lookup-signatures`` allows network lookups.
    """
    configure_logging(args)
    try:
        raw_trace = unwrap_rpc_result(load_json_file(args.trace, "trace"))
        tx = unwrap_rpc_result(load_json_file(args.tx, "transaction")) if args.tx else None
        trace = normalize_trace(raw_trace, flavor=_parse_flavor(args.flavor), tx=tx)

        receipt = None
        if args.receipt:
            raw_receipt = unwrap_rpc_result(load_json_file(args.receipt, "receipt"))
            receipt = TxReceipt.from_dict(raw_receipt, tx_hash=args.tx_hash or "")

        settings = build_settings(args)
        signatures = None
        if args.lookup_signatures and not args.no_explain:
            signatures = SignatureLookup(cache=Cache.from_settings(settings))

        analyzer = TransactionAnalyzer(
            trace_provider=None,
            signature_lookup=signatures,
            abi_decoder=load_abi_decoder(args.abi),
            chain_id=settings.chain_id,
        )
        report = analyzer.analyze_trace(
            trace,
            receipt,
            tx_hash=args.tx_hash or (receipt.transaction_hash if receipt else None) or None,
            include_debug_tree=args.include_debug,
            explain=not args.no_explain,
            extra_findings=load_slither_findings(args.slither_json),
        )
        _emit(report, args)
    except Exception as e:
        logger.debug("analyze-file failed", exc_info=True)
        return handle_command_error(e, json_mode=True)

    return 0
