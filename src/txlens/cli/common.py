"""
Common utilities for CLI commands.

Shared setup (logging, settings, providers) and uniform error and output
handling for the txlens subcommands.
"""

import json
import sys
from typing import Any, List, Optional

from txlens.config import Settings
from txlens.parsers.trace import TraceFlavor
from txlens.providers.abi import AbiDecoder
from txlens.providers.cache import Cache
from txlens.providers.debug_trace import DebugTracer
from txlens.providers.receipt import ReceiptProvider
from txlens.providers.rpc import RPCClient
from txlens.utils.exceptions import ParseError, format_error
from txlens.utils.logging import logger, setup_logging
from txlens.vuln.external import map_slither_findings, parse_slither_json
from txlens.vuln.types import Finding
from txlens.utils.colors import info


def configure_logging(args: Any) -> None:
    setup_logging(
        quiet=getattr(args, 'quiet', False),
        debug=getattr(args, 'debug', False),
        verbose=getattr(args, 'verbose', False),
        log_file=getattr(args, 'log_file', None),
    )


def build_settings(args: Any) -> Settings:
    """Environment settings with command-line flags layered on top."""
    return Settings.from_env().with_overrides(
        rpc_url=getattr(args, 'rpc', None),
        timeout=getattr(args, 'timeout', None),
        cache_dir=getattr(args, 'cache_dir', None),
        chain_id=getattr(args, 'chain_id', None),
    )


def create_providers(settings: Settings, flavor: TraceFlavor):
    """
    Create the RPC client, cache, tracer and receipt provider for a session.

    Returns:
        (DebugTracer, ReceiptProvider, Cache)
    """
    logger.debug(f"Connecting to RPC: {settings.rpc_url}")
    cache = Cache.from_settings(settings)
    rpc = RPCClient.from_settings(settings)
    tracer = DebugTracer(rpc, flavor=flavor, cache=cache, tracer_timeout=settings.tracer_timeout)
    receipts = ReceiptProvider(rpc, cache=cache)
    return tracer, receipts, cache


def load_abi_decoder(paths: Optional[List[str]]) -> Optional[AbiDecoder]:
    """
    Load every ABI file given on the command line into one decoder.

    Raises:
        ABIParseError: If any file cannot be read
    """
    if not paths:
        return None
    decoder = AbiDecoder()
    for path in paths:
        decoder.load_abi(path)
        logger.debug(f"Loaded ABI from {path}")
    return decoder


def load_slither_findings(path: Optional[str]) -> List[Finding]:
    if not path:
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ParseError(f"Could not read Slither JSON: {e}", source=path) from e
    return map_slither_findings(parse_slither_json(text, source=path))


def load_json_file(path: str, what: str) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except OSError as e:
        raise ParseError(f"Could not read {what} file: {e}", source=path) from e
    except ValueError as e:
        raise ParseError(f"Invalid JSON in {what} file: {e}", source=path) from e


def unwrap_rpc_result(data: Any) -> Any:
    """Saved files may hold the whole JSON-RPC response rather than its result."""
    if isinstance(data, dict) and 'result' in data and ('jsonrpc' in data or 'id' in data):
        return data['result']
    return data


def write_output(text: str, output: Optional[str] = None) -> None:
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)
            f.write('\n')
        logger.info(f"Report written to {output}")
    else:
        print(text)


def handle_command_error(
    e: Exception,
    json_mode: bool = False,
    exit_code: int = 1
) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON on stdout
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code


def print_connection_info(rpc_url: str, quiet: bool = False) -> None:
    if not quiet:
        print(f"Connecting to RPC: {info(rpc_url)}", file=sys.stderr)
