"""
Providers module for txlens.

Everything that talks to the outside world lives here:
- RPCClient: JSON-RPC with retries
- Cache: LRU/TTL response cache with optional disk persistence
- DebugTracer: debug_traceTransaction / debug_traceCall
- ReceiptProvider: transaction receipts
- SignatureLookup: selector and topic signatures from public databases
- AbiDecoder: calldata and log decoding from local ABIs
"""

from .rpc import RPCClient, default_should_retry, jittered_backoff
from .cache import Cache
from .debug_trace import DebugTracer
from .receipt import ReceiptProvider, TxReceipt
from .signatures import SignatureLookup, SignatureHit
from .abi import AbiDecoder, DecodedCall, DecodedLog, format_abi_type

__all__ = [
    'RPCClient',
    'default_should_retry',
    'jittered_backoff',
    'Cache',
    'DebugTracer',
    'ReceiptProvider',
    'TxReceipt',
    'SignatureLookup',
    'SignatureHit',
    'AbiDecoder',
    'DecodedCall',
    'DecodedLog',
    'format_abi_type',
]
