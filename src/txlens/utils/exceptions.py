"""
Custom exceptions for txlens.

This module provides a hierarchy of exceptions for the failure cases that
are allowed to reach the caller (provider and input-file failures), along
with utilities for formatting errors consistently.

Malformed trace data, failing rules and unmatched logs are not errors at
this level; they are degraded or isolated inside the analysis core.
"""

import json
from typing import Any, Dict, Optional


class TxlensError(Exception):
    """
    Base exception for all txlens errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)


# ============================================================================
# RPC Errors
# ============================================================================

class RPCConnectionError(TxlensError):
    """Raised when the RPC endpoint cannot be reached."""

    def __init__(self, message: str, rpc_url: Optional[str] = None, **kwargs):
        details = {"rpc_url": rpc_url} if rpc_url else {}
        details.update(kwargs)
        super().__init__(message, details, "RPCConnectionError")


class RPCError(TxlensError):
    """Raised when a JSON-RPC call returns an error object."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        method: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if code is not None:
            details["code"] = code
        if data is not None:
            details["data"] = data
        if method:
            details["method"] = method
        details.update(kwargs)
        super().__init__(message, details, "RPCError")
        self.code = code
        self.data = data


class RPCTransportError(RPCConnectionError):
    """Raised on HTTP failures, timeouts and unparseable responses."""

    def __init__(
        self,
        message: str,
        rpc_url: Optional[str] = None,
        method: Optional[str] = None,
        is_timeout: bool = False,
        **kwargs
    ):
        if method:
            kwargs["method"] = method
        if is_timeout:
            kwargs["is_timeout"] = True
        super().__init__(message, rpc_url=rpc_url, **kwargs)
        self.error_code = "RPCTransportError"
        self.is_timeout = is_timeout


# ============================================================================
# Transaction Errors
# ============================================================================

class TransactionError(TxlensError):
    """Raised when transaction data cannot be obtained."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        details.update(kwargs)
        super().__init__(message, details, "TransactionError")


class TransactionNotFoundError(TransactionError):
    """Raised when transaction is not found."""

    def __init__(self, tx_hash: str, **kwargs):
        super().__init__(
            f"Transaction not found: {tx_hash}",
            tx_hash=tx_hash,
            **kwargs
        )
        self.error_code = "TransactionNotFoundError"


class DebugTraceUnavailableError(TransactionError):
    """Raised when debug trace is not available for a transaction."""

    def __init__(
        self,
        tx_hash: str,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"debug_traceTransaction unavailable for {tx_hash}"
        if reason:
            message += f": {reason}"
        super().__init__(message, tx_hash=tx_hash, **kwargs)
        self.error_code = "DebugTraceUnavailable"


# ============================================================================
# Parsing Errors
# ============================================================================

class ParseError(TxlensError):
    """Raised when an input document cannot be parsed at all."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = {"source": source} if source else {}
        details.update(kwargs)
        super().__init__(message, details, "ParseError")


class ABIParseError(ParseError):
    """Raised when ABI parsing fails."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.error_code = "ABIParseError"


class TraceFormatError(ParseError):
    """Raised when a trace file is not a recognizable tracer payload."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.error_code = "TraceFormatError"


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from txlens.utils.colors import error

    if isinstance(e, TxlensError):
        if json_mode:
            return e.to_json()
        return error(e.message)
    if json_mode:
        return json.dumps(format_error_json(format_exception_message(e), type(e).__name__), indent=2)
    return error(format_exception_message(e))


def format_error_json(
    message: str,
    error_type: str = "Error",
    **kwargs
) -> Dict[str, Any]:
    """
    Create a standardized error JSON structure.

    Args:
        message: Error message
        error_type: Error type/code
        **kwargs: Additional fields to include

    Returns:
        Dictionary suitable for JSON output
    """
    return {
        "error": True,
        "type": error_type,
        "message": message,
        **kwargs
    }


def format_exception_message(e: Exception) -> str:
    """
    Extract a clean, user-friendly error message from any exception.

    Web3 RPC errors carry a dict like {'code': -32003, 'message': '...'}
    as their first argument; everything else falls back to str().
    """
    if hasattr(e, 'args') and e.args:
        first_arg = e.args[0]
        if isinstance(first_arg, dict):
            return first_arg.get('message', str(e))
        elif isinstance(first_arg, str):
            return first_arg
        return str(first_arg)
    return str(e)
