#!/usr/bin/env python3
"""
Main entry point for txlens

This module serves as the CLI entry point, handling argument parsing
and routing to the appropriate command implementations in the cli/ module.
"""

import sys
import argparse

from txlens.config import CORE_VERSION
from .analyze import analyze_command, analyze_file_command
from .revert import decode_revert_command


def _add_logging_flags(parser):
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--debug', action='store_true', help='Enable debug logging')
    group.add_argument('--verbose', action='store_true', help='Enable trace-level logging (more detailed than --debug)')
    group.add_argument('--quiet', '-q', action='store_true', help='Suppress all log output')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file')


def _add_analysis_flags(parser):
    parser.add_argument('--chain-id', type=int, default=None, help='Chain id recorded in the report (default: $TXLENS_CHAIN_ID)')
    parser.add_argument('--flavor', default=None, help='Tracer to use: callTracer (default) or structLogs')
    parser.add_argument('--abi', action='append', help='ABI JSON file used to resolve selectors. Can be specified multiple times')
    parser.add_argument('--slither-json', default=None, help='Slither JSON output whose findings are merged into the report')
    parser.add_argument('--include-debug', action='store_true', help='Embed the full call tree in the report')
    parser.add_argument('--no-explain', action='store_true', help='Skip explanations and signature lookups')
    parser.add_argument('--pretty', action='store_true', help='Print a human readable summary to stderr')
    parser.add_argument('--compact', action='store_true', help='Write the JSON report on a single line')
    parser.add_argument('--output', '-o', default=None, help='Write the JSON report to this file instead of stdout')
    parser.add_argument('--cache-dir', default=None, help='Persist provider responses under this directory')
    parser.add_argument('--timeout', type=float, default=None, help='RPC timeout in seconds')
    _add_logging_flags(parser)


def main():
    """Main entry point for txlens CLI."""
    parser = argparse.ArgumentParser(description='txlens - EVM transaction analyzer')
    parser.add_argument('--version', '-v', action='version', version=f"%(prog)s {CORE_VERSION}")

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Analyze a mined transaction over JSON-RPC')
    analyze_parser.add_argument('tx_hash', help='Transaction hash to analyze')
    analyze_parser.add_argument('--rpc', '-r', default=None, help='RPC URL (default: $TXLENS_RPC_URL or http://localhost:8545)')
    _add_analysis_flags(analyze_parser)

    # analyze-file command
    file_parser = subparsers.add_parser('analyze-file', help='Analyze tracer output saved to disk')
    file_parser.add_argument('--trace', '-t', required=True, help='JSON file with debug_traceTransaction output')
    file_parser.add_argument('--receipt', default=None, help='JSON file with the transaction receipt')
    file_parser.add_argument('--tx', default=None, help='JSON file with the transaction object (needed for structLogs)')
    file_parser.add_argument('--tx-hash', default=None, help='Transaction hash recorded in the report')
    file_parser.add_argument('--lookup-signatures', action='store_true', help='Resolve unknown selectors through public signature databases')
    _add_analysis_flags(file_parser)

    # decode-revert command
    revert_parser = subparsers.add_parser('decode-revert', help='Decode revert data')
    revert_parser.add_argument('data', help='Revert data as hex (0x...)')
    revert_parser.add_argument('--json', action='store_true', help='Output the decoded payload as JSON')
    _add_logging_flags(revert_parser)

    args = parser.parse_args()

    if args.command == 'analyze':
        return analyze_command(args)
    elif args.command == 'analyze-file':
        return analyze_file_command(args)
    elif args.command == 'decode-revert':
        return decode_revert_command(args)

    return 1


if __name__ == '__main__':
    sys.exit(main())
