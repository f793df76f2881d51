"""
Receipt log to call frame attribution.

The receipt lists every log of the transaction in execution order
(``logIndex``) but does not say which frame emitted it. The callTracer
attaches logs to frames but its global ordering has to be reconstructed.
This module recovers ``logIndex -> call id`` by matching fingerprints
(address + topics + data) and using relative order to tell identical
duplicates apart.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from txlens.core.call_tree import CallNode, iter_preorder
from txlens.utils.helpers import normalize_address, normalize_hex, parse_log_index
from txlens.utils.logging import get_logger

log = get_logger("core.log_attribution")


@dataclass
class ReceiptLog:
    """A log entry as reported by eth_getTransactionReceipt."""
    address: str
    topics: List[str] = field(default_factory=list)
    data: str = "0x"
    log_index: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceiptLog":
        topics = data.get("topics")
        if not isinstance(topics, list):
            topics = []
        return cls(
            address=normalize_address(data.get("address")),
            topics=[normalize_hex(t) for t in topics if isinstance(t, str)],
            data=normalize_hex(data.get("data")) if isinstance(data.get("data"), str) else "0x",
            log_index=data.get("logIndex", data.get("log_index")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"address": self.address, "topics": list(self.topics), "data": self.data}
        if self.log_index is not None:
            result["logIndex"] = self.log_index
        return result


@dataclass(frozen=True)
class FlatTraceLog:
    """A trace log with its global execution sequence number."""
    call_id: str
    seq: int
    address: str
    topics: tuple
    data: str


def coerce_receipt_logs(logs) -> List[ReceiptLog]:
    """Accept ReceiptLog objects or raw receipt dicts; anything else is dropped."""
    if not isinstance(logs, (list, tuple)):
        return []
    out = []
    for entry in logs:
        if isinstance(entry, ReceiptLog):
            out.append(entry)
        elif isinstance(entry, dict):
            out.append(ReceiptLog.from_dict(entry))
        else:
            log.debug(f"Skipping malformed receipt log entry: {entry!r}")
    return out


def fingerprint_log(address: str, topics: List[str], data: str) -> str:
    """Composite key used to correlate receipt logs with trace logs."""
    joined = ",".join(normalize_hex(t) for t in (topics or []))
    return f"{normalize_address(address)}|{joined}|{normalize_hex(data)}"


def flatten_trace_logs(root: CallNode) -> List[FlatTraceLog]:
    """
    Flatten the logs of every frame into one execution-ordered sequence.

    Frames are visited in pre-order (parent logs first, then children),
    and logs keep their order within a frame.
    """
    out: List[FlatTraceLog] = []
    for node in iter_preorder(root):
        for entry in node.logs:
            out.append(FlatTraceLog(
                call_id=node.id,
                seq=len(out),
                address=normalize_address(entry.address),
                topics=tuple(normalize_hex(t) for t in entry.topics),
                data=normalize_hex(entry.data),
            ))
    return out


def match_receipt_logs_to_call_ids(receipt_logs: List[ReceiptLog], root: CallNode) -> Dict[int, str]:
    """
    Map receipt ``logIndex`` values to the id of the emitting call frame.

    Receipt logs are processed in ``logIndex`` order. For each one the
    earliest unconsumed trace log with the same fingerprint and a sequence
    number not before the last match is chosen; if none qualifies, any
    unconsumed candidate is taken instead (some nodes order trace logs
    differently from the receipt). Each trace log is used at most once.
    Receipt logs without a candidate are left out of the result.

    Args:
        receipt_logs: Logs from the transaction receipt
        root: Root of the call tree

    Returns:
        Dict of logIndex -> call id
    """
    receipt_logs = coerce_receipt_logs(receipt_logs)
    buckets: Dict[str, List[FlatTraceLog]] = defaultdict(list)
    for tl in flatten_trace_logs(root):
        buckets[fingerprint_log(tl.address, list(tl.topics), tl.data)].append(tl)
    for bucket in buckets.values():
        bucket.sort(key=lambda x: x.seq)

    ordered = sorted(
        ((parse_log_index(rl.log_index, i), rl) for i, rl in enumerate(receipt_logs)),
        key=lambda pair: pair[0],
    )

    used_seq = set()
    result: Dict[int, str] = {}
    last_seq = -1

    for idx, rl in ordered:
        candidates = buckets.get(fingerprint_log(rl.address, rl.topics, rl.data))
        if not candidates:
            continue

        picked = None
        for c in candidates:
            if c.seq in used_seq or c.seq < last_seq:
                continue
            picked = c
            break

        if picked is None:
            for c in candidates:
                if c.seq not in used_seq:
                    picked = c
                    break

        if picked is not None:
            used_seq.add(picked.seq)
            result[idx] = picked.call_id
            last_seq = max(last_seq, picked.seq)

    unmatched = len(receipt_logs) - len(result)
    if unmatched:
        log.debug(f"{unmatched} receipt log(s) could not be attributed to a call frame")
    return result
