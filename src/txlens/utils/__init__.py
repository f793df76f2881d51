"""
Utilities module for txlens.

Provides exception handling, logging, colors, and hex helpers.
"""

from .exceptions import (
    TxlensError,
    RPCConnectionError,
    RPCError,
    RPCTransportError,
    TransactionError,
    TransactionNotFoundError,
    DebugTraceUnavailableError,
    ParseError,
    ABIParseError,
    TraceFormatError,
    format_error,
    format_error_json,
    format_exception_message,
)
from .logging import setup_logging, get_logger, log_duration, logger, TRACE
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    error, success, warning, info,
    bold, dim, address, gas_value, call_id, severity,
)
from .helpers import (
    parse_quantity,
    parse_value,
    parse_log_index,
    normalize_hex,
    normalize_address,
    address_from_topic,
    hex_to_int,
    selector_of_input,
    short_address,
)

__all__ = [
    # Exceptions
    'TxlensError',
    'RPCConnectionError',
    'RPCError',
    'RPCTransportError',
    'TransactionError',
    'TransactionNotFoundError',
    'DebugTraceUnavailableError',
    'ParseError',
    'ABIParseError',
    'TraceFormatError',
    'format_error',
    'format_error_json',
    'format_exception_message',
    # Logging
    'setup_logging',
    'log_duration',
    'get_logger',
    'logger',
    'TRACE',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'error', 'success', 'warning', 'info',
    'bold', 'dim', 'address', 'gas_value', 'call_id', 'severity',
    # Helpers
    'parse_quantity',
    'parse_value',
    'parse_log_index',
    'normalize_hex',
    'normalize_address',
    'address_from_topic',
    'hex_to_int',
    'selector_of_input',
    'short_address',
]
