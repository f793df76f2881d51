"""Transaction receipts and transaction objects over JSON-RPC."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from txlens.core.log_attribution import ReceiptLog
from txlens.providers.cache import Cache
from txlens.providers.rpc import RPCClient
from txlens.utils.helpers import normalize_hex, parse_quantity
from txlens.utils.logging import get_logger

log = get_logger("providers.receipt")


@dataclass
class TxReceipt:
    transaction_hash: str
    logs: List[ReceiptLog] = field(default_factory=list)
    status: Optional[int] = None
    gas_used: Optional[int] = None
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> Optional[bool]:
        return None if self.status is None else self.status == 1

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]], tx_hash: str = "") -> "TxReceipt":
        """Build from an ``eth_getTransactionReceipt`` result; None gives an empty receipt."""
        if not raw:
            return cls(transaction_hash=tx_hash)
        logs = raw.get("logs") if isinstance(raw.get("logs"), list) else []
        return cls(
            transaction_hash=raw.get("transactionHash") or tx_hash,
            logs=[ReceiptLog.from_dict(l) for l in logs if isinstance(l, dict)],
            status=parse_quantity(raw.get("status")),
            gas_used=parse_quantity(raw.get("gasUsed")),
            block_number=parse_quantity(raw.get("blockNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"transactionHash": self.transaction_hash}
        if self.status is not None:
            result["status"] = hex(self.status)
        if self.gas_used is not None:
            result["gasUsed"] = hex(self.gas_used)
        if self.block_number is not None:
            result["blockNumber"] = hex(self.block_number)
        result["logs"] = [l.to_dict() for l in self.logs]
        return result


class ReceiptProvider:
    """
    Fetch receipts (and transaction objects) for a transaction hash.

    Args:
        rpc: RPC client
        cache: Optional response cache
    """

    def __init__(self, rpc: RPCClient, cache: Optional[Cache] = None):
        self.rpc = rpc
        self.cache = cache

    def _cached(self, key: str, loader):
        if self.cache is not None:
            return self.cache.get_or_set(key, loader)
        return loader()

    def get_transaction_receipt(self, tx_hash: str) -> TxReceipt:
        """
        Fetch the receipt of ``tx_hash``.

        A node that does not know the transaction (yet) yields an empty
        receipt with no logs rather than an error.
        """
        key = f"receipt:{normalize_hex(tx_hash)}"
        raw = self._cached(key, lambda: self.rpc.call("eth_getTransactionReceipt", [tx_hash]))
        if not raw:
            log.warning(f"No receipt found for {tx_hash}")
        return TxReceipt.from_dict(raw, tx_hash)

    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        key = f"tx:{normalize_hex(tx_hash)}"
        return self._cached(key, lambda: self.rpc.call("eth_getTransactionByHash", [tx_hash]))
