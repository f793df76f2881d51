"""
Trace normalization.

Different clients (and different tracers on the same client) return
differently shaped payloads for ``debug_traceTransaction``. Each supported
shape is a ``TraceFlavor`` with its own normalization function; everything
downstream only ever sees ``NormalizedTrace``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from txlens.utils.exceptions import TraceFormatError
from txlens.utils.logging import get_logger

log = get_logger("parsers.trace")


class TraceFlavor(str, Enum):
    """Tracer output formats understood by the normalizer."""
    CALL_TRACER = "geth_callTracer"
    STRUCT_LOGS = "geth_structLogs"

    @classmethod
    def parse(cls, name: str) -> "TraceFlavor":
        aliases = {
            "calltracer": cls.CALL_TRACER,
            "geth_calltracer": cls.CALL_TRACER,
            "structlogs": cls.STRUCT_LOGS,
            "geth_structlogs": cls.STRUCT_LOGS,
        }
        try:
            return aliases[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown trace flavor: {name}") from None


@dataclass
class NormalizedLog:
    address: str
    topics: List[str] = field(default_factory=list)
    data: str = "0x"

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "topics": list(self.topics), "data": self.data}


@dataclass
class NormalizedTrace:
    """
    Tracer-agnostic call frame.

    Quantities stay as strings (hex or decimal) exactly as the tracer sent
    them; the call-tree builder is responsible for parsing them.
    """
    type: str
    from_addr: str
    to: Optional[str] = None
    input: Optional[str] = None
    output: Optional[str] = None
    value: Optional[str] = None
    gas: Optional[str] = None
    gas_used: Optional[str] = None
    error: Optional[str] = None
    revert_reason: Optional[str] = None
    calls: List["NormalizedTrace"] = field(default_factory=list)
    logs: List[NormalizedLog] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type, "from": self.from_addr}
        optional = {
            "to": self.to,
            "input": self.input,
            "output": self.output,
            "value": self.value,
            "gas": self.gas,
            "gasUsed": self.gas_used,
            "error": self.error,
            "revertReason": self.revert_reason,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        if self.calls:
            result["calls"] = [c.to_dict() for c in self.calls]
        if self.logs:
            result["logs"] = [l.to_dict() for l in self.logs]
        return result


def _to_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    return None


def _hex_or_none(value: Any) -> Optional[str]:
    # Some nodes send "" or non-hex garbage for input/output; drop it
    if isinstance(value, str) and value.startswith("0x"):
        return value
    return None


def _normalize_address(value: Any, lower: bool) -> str:
    if not isinstance(value, str) or not value:
        return ""
    addr = value if value.startswith("0x") else f"0x{value}"
    return addr.lower() if lower else addr


def _normalize_topics(topics: Any, lower: bool) -> List[str]:
    if not isinstance(topics, list):
        return []
    return [t.lower() if lower else t for t in topics if isinstance(t, str) and t]


def _normalize_logs(logs: Any, lower: bool) -> List[NormalizedLog]:
    if not isinstance(logs, list):
        return []
    out = []
    for entry in logs:
        entry = entry if isinstance(entry, dict) else {}
        data = entry.get("data")
        out.append(NormalizedLog(
            address=_normalize_address(entry.get("address"), lower),
            topics=_normalize_topics(entry.get("topics"), lower),
            data=data if isinstance(data, str) and data.startswith("0x") else "0x",
        ))
    return out


def _normalize_call_tracer(raw: Any, lower: bool, tx: Optional[Dict[str, Any]]) -> NormalizedTrace:
    def norm(node: Dict[str, Any]) -> NormalizedTrace:
        node_type = node.get("type")
        revert_reason = node.get("revertReason")
        if not isinstance(revert_reason, str):
            revert_reason = node.get("revert") if isinstance(node.get("revert"), str) else None
        error = node.get("error")
        return NormalizedTrace(
            type=node_type.upper() if isinstance(node_type, str) and node_type else "CALL",
            from_addr=_normalize_address(node.get("from"), lower),
            to=_normalize_address(node["to"], lower) if node.get("to") else None,
            input=_hex_or_none(node.get("input")),
            output=_hex_or_none(node.get("output")),
            value=_to_str(node.get("value")),
            gas=_to_str(node.get("gas")),
            gas_used=_to_str(node.get("gasUsed")),
            error=error if isinstance(error, str) else None,
            revert_reason=revert_reason,
            logs=_normalize_logs(node.get("logs"), lower),
        )

    # Iterative walk: callTracer output can nest 1024 frames deep
    raw = raw if isinstance(raw, dict) else {}
    root = norm(raw)
    stack = [(raw, root)]
    while stack:
        node, out = stack.pop()
        calls = node.get("calls")
        if not isinstance(calls, list):
            continue
        for child in calls:
            child = child if isinstance(child, dict) else {}
            normalized = norm(child)
            out.calls.append(normalized)
            stack.append((child, normalized))
    return root


def _normalize_struct_logs(raw: Any, lower: bool, tx: Optional[Dict[str, Any]]) -> NormalizedTrace:
    # structLogs carries no transaction-level fields; they come from the
    # transaction object when the caller has it. No children are inferred.
    raw = raw if isinstance(raw, dict) else {}
    tx = tx or {}
    error = raw.get("error") if isinstance(raw.get("error"), str) else None
    if error is None and raw.get("failed"):
        error = "execution reverted"
    return_value = raw.get("returnValue")
    if isinstance(return_value, str) and return_value and not return_value.startswith("0x"):
        return_value = "0x" + return_value
    gas_used = raw.get("gasUsed", raw.get("gas"))
    return NormalizedTrace(
        type="CREATE" if tx and not tx.get("to") and tx.get("from") else "CALL",
        from_addr=_normalize_address(raw.get("from", tx.get("from")), lower),
        to=_normalize_address(tx["to"], lower) if tx.get("to") else None,
        input=_hex_or_none(raw.get("input", tx.get("input"))),
        output=_hex_or_none(return_value),
        value=_to_str(tx.get("value")),
        gas=_to_str(tx.get("gas")),
        gas_used=_to_str(gas_used),
        error=error,
    )


_NORMALIZERS: Dict[TraceFlavor, Callable[[Any, bool, Optional[Dict[str, Any]]], NormalizedTrace]] = {
    TraceFlavor.CALL_TRACER: _normalize_call_tracer,
    TraceFlavor.STRUCT_LOGS: _normalize_struct_logs,
}


def detect_flavor(raw: Any) -> TraceFlavor:
    """Guess the flavor of a saved tracer payload."""
    if isinstance(raw, dict):
        if "structLogs" in raw:
            return TraceFlavor.STRUCT_LOGS
        if "type" in raw or "calls" in raw or "from" in raw:
            return TraceFlavor.CALL_TRACER
    raise TraceFormatError("Unrecognized trace payload: expected callTracer or structLogs output")


def normalize_trace(
    raw: Any,
    flavor: Optional[TraceFlavor] = None,
    lower_case_address: bool = True,
    tx: Optional[Dict[str, Any]] = None,
) -> NormalizedTrace:
    """
    Convert a raw tracer payload into a ``NormalizedTrace``.

    Args:
        raw: Result object of debug_traceTransaction / debug_traceCall
        flavor: Tracer that produced ``raw``; detected when omitted
        lower_case_address: Lowercase every address and topic
        tx: Optional transaction object, used to fill in fields that
            the structLogs tracer does not report

    Returns:
        Normalized root frame
    """
    if isinstance(raw, NormalizedTrace):
        return raw
    if flavor is None:
        flavor = detect_flavor(raw)
    log.debug(f"Normalizing {flavor.value} trace")
    return _NORMALIZERS[flavor](raw, lower_case_address, tx)
