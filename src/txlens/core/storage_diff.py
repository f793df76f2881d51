"""Optional storage diff input for reports."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from txlens.utils.logging import get_logger

log = get_logger("core.storage_diff")


@dataclass
class StorageDiffItem:
    address: str
    slot: str
    before: Optional[str] = None
    after: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"address": self.address, "slot": self.slot}
        if self.before is not None:
            result["from"] = self.before
        if self.after is not None:
            result["to"] = self.after
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageDiffItem":
        return cls(
            address=str(data.get("address", "")).lower(),
            slot=str(data.get("slot", "")),
            before=data.get("from"),
            after=data.get("to"),
        )


def try_get_storage_diff(provider, tx_hash: str) -> Optional[List[StorageDiffItem]]:
    """
    Ask an optional storage diff provider for the transaction's slot changes.

    Storage diffs are extra detail; a missing provider or a failing one
    leaves the section out of the report.
    """
    if provider is None:
        return None
    try:
        items = provider.get_storage_diff(tx_hash)
    except Exception as e:
        log.warning(f"Storage diff unavailable for {tx_hash}: {e}")
        return None
    return [i if isinstance(i, StorageDiffItem) else StorageDiffItem.from_dict(i) for i in items or []]
