"""
Trace provider backed by geth-style ``debug_trace*`` RPC methods.

Raw tracer responses are cached; normalization into ``NormalizedTrace``
happens after the cache so cached entries stay plain JSON.
"""

from typing import Any, Dict, Optional, Union

from txlens.config import DEFAULT_TRACER_TIMEOUT
from txlens.parsers.trace import NormalizedTrace, TraceFlavor, normalize_trace
from txlens.providers.cache import Cache
from txlens.providers.rpc import RPCClient, is_not_found_error
from txlens.utils.exceptions import DebugTraceUnavailableError, RPCError, TransactionNotFoundError
from txlens.utils.logging import get_logger

log = get_logger("providers.debug_trace")

# Error messages nodes use when the debug namespace is disabled or missing
_UNAVAILABLE_MARKERS = ("method not found", "does not exist", "not available", "not supported")


class DebugTracer:
    """
    Fetch and normalize execution traces.

    Args:
        rpc: RPC client
        flavor: Tracer to request (callTracer by default)
        cache: Optional response cache
        with_log: Ask callTracer to attach logs to frames
        only_top_call: Ask callTracer to skip nested frames
        tracer_timeout: Node-side tracer timeout (geth duration string)
        lower_case_address: Lowercase addresses while normalizing
    """

    def __init__(
        self,
        rpc: RPCClient,
        flavor: TraceFlavor = TraceFlavor.CALL_TRACER,
        cache: Optional[Cache] = None,
        with_log: bool = True,
        only_top_call: bool = False,
        tracer_timeout: str = DEFAULT_TRACER_TIMEOUT,
        lower_case_address: bool = True,
    ):
        self.rpc = rpc
        self.flavor = flavor
        self.cache = cache
        self.with_log = with_log
        self.only_top_call = only_top_call
        self.tracer_timeout = tracer_timeout
        self.lower_case_address = lower_case_address

    def _call_tracer_config(self) -> Dict[str, Any]:
        return {
            "tracer": "callTracer",
            "tracerConfig": {"withLog": self.with_log, "onlyTopCall": self.only_top_call},
            "timeout": self.tracer_timeout,
        }

    def _struct_logs_config(self) -> Dict[str, Any]:
        return {
            "disableStorage": True,
            "disableStack": True,
            "disableMemory": True,
            "enableReturnData": True,
            "timeout": self.tracer_timeout,
        }

    def _cached(self, key: str, loader):
        if self.cache is not None:
            return self.cache.get_or_set(key, loader)
        return loader()

    def fetch_raw_transaction_trace(self, tx_hash: str) -> Any:
        """Raw ``debug_traceTransaction`` result for the configured flavor."""
        config = self._call_tracer_config() if self.flavor == TraceFlavor.CALL_TRACER else self._struct_logs_config()
        key = f"trace:tx:{self.flavor.value}:{tx_hash.lower()}"

        def load():
            try:
                return self.rpc.call("debug_traceTransaction", [tx_hash, config])
            except RPCError as e:
                message = e.message.lower()
                if is_not_found_error(e):
                    raise TransactionNotFoundError(tx_hash, code=e.code) from e
                if any(m in message for m in _UNAVAILABLE_MARKERS):
                    raise DebugTraceUnavailableError(tx_hash, reason=e.message) from e
                raise

        return self._cached(key, load)

    def trace_transaction(self, tx_hash: str, tx: Optional[Dict[str, Any]] = None) -> NormalizedTrace:
        """
        Trace a mined transaction.

        Args:
            tx_hash: Transaction hash
            tx: Transaction object; only used by the structLogs flavor to
                fill in from/to/input/value

        Raises:
            DebugTraceUnavailableError: The node has no debug namespace
            TransactionNotFoundError: The node does not know the transaction
            RPCError, RPCTransportError: Any other provider failure
        """
        raw = self.fetch_raw_transaction_trace(tx_hash)
        if raw is None:
            raise DebugTraceUnavailableError(tx_hash, reason="node returned no trace")
        return normalize_trace(raw, self.flavor, lower_case_address=self.lower_case_address, tx=tx)

    def trace_call(self, call: Dict[str, Any], block_tag: Union[str, int] = "latest") -> NormalizedTrace:
        """Trace an unmined call with ``debug_traceCall`` (callTracer only)."""
        if self.flavor != TraceFlavor.CALL_TRACER:
            raise ValueError("trace_call supports only the callTracer flavor")

        key = ":".join([
            "trace:call",
            str(block_tag),
            str(call.get("to", "")).lower(),
            str(call.get("data", "")),
            str(call.get("from", "")),
            str(call.get("value", "")),
        ])
        raw = self._cached(key, lambda: self.rpc.call("debug_traceCall", [call, block_tag, self._call_tracer_config()]))
        return normalize_trace(raw, TraceFlavor.CALL_TRACER, lower_case_address=self.lower_case_address)
