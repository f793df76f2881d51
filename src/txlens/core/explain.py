"""
Human-readable explanations for a report.

Indexes every call frame by id with its selector (and signature when a
lookup is available) and renders token transfers as one-line summaries.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from txlens.core.attribution import TokenTransfer
from txlens.core.call_tree import CallTree
from txlens.utils.helpers import short_address
from txlens.utils.logging import get_logger

log = get_logger("core.explain")


@dataclass
class CallExplanation:
    call_id: str
    type: Optional[str] = None
    from_addr: Optional[str] = None
    to: Optional[str] = None
    selector: Optional[str] = None
    signature: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.call_id} {short_address(self.to)} {self.signature or self.selector or ''}".strip()

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"callId": self.call_id}
        for key, value in (
            ("type", self.type),
            ("from", self.from_addr),
            ("to", self.to),
            ("selector", self.selector),
            ("signature", self.signature),
        ):
            if value is not None:
                result[key] = value
        return result


@dataclass
class TransferExplanation:
    token: str
    from_addr: str
    to: str
    value: str
    human: str
    call_id: Optional[str] = None
    call: Optional[CallExplanation] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "token": self.token,
            "from": self.from_addr,
            "to": self.to,
            "value": self.value,
        }
        if self.call_id is not None:
            result["callId"] = self.call_id
        if self.call is not None:
            result["call"] = self.call.to_dict()
        result["human"] = self.human
        return result


@dataclass
class ReportExplanations:
    calls_by_id: Dict[str, CallExplanation] = field(default_factory=dict)
    transfers: List[TransferExplanation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "callsById": {k: v.to_dict() for k, v in self.calls_by_id.items()},
            "transfers": [t.to_dict() for t in self.transfers],
        }


def describe_transfer(token: str, from_addr: str, to: str, value: Any, call: Optional[CallExplanation]) -> str:
    call_part = call.label if call is not None else "unknown-call"
    return (
        f"Transfer {short_address(token)}: {short_address(from_addr)} -> "
        f"{short_address(to)} ({value}) @ {call_part}"
    )


def _resolve_signatures(calls: Dict[str, CallExplanation], signature_lookup) -> None:
    selectors = []
    for c in calls.values():
        if c.selector and c.selector not in selectors:
            selectors.append(c.selector)

    resolved: Dict[str, str] = {}
    for sel in selectors:
        # Lookups hit public APIs; a failure just leaves the selector unresolved
        try:
            sig = signature_lookup.lookup_selector(sel)
        except Exception as e:
            log.debug(f"Signature lookup failed for {sel}: {e}")
            continue
        if sig:
            resolved[sel] = sig

    for c in calls.values():
        if c.selector in resolved:
            c.signature = resolved[c.selector]


def build_explanations(
    trace: CallTree,
    transfers: List[TokenTransfer],
    signature_lookup=None,
) -> ReportExplanations:
    """
    Build the explanation section of a report.

    Args:
        trace: Call tree of the transaction
        transfers: Token transfers, ideally with call ids bound
        signature_lookup: Optional object with ``lookup_selector(selector)``;
            without it calls are labelled by selector only

    Returns:
        ReportExplanations
    """
    calls: Dict[str, CallExplanation] = {}
    for c in trace.flat:
        calls[c.id] = CallExplanation(
            call_id=c.id,
            type=c.type.value,
            from_addr=c.from_addr,
            to=c.to,
            selector=c.selector,
        )

    if signature_lookup is not None:
        _resolve_signatures(calls, signature_lookup)

    explained = []
    for t in transfers:
        call = calls.get(t.call_id) if t.call_id else None
        token = t.token.lower()
        from_addr = t.from_addr.lower()
        to = t.to.lower()
        explained.append(TransferExplanation(
            token=token,
            from_addr=from_addr,
            to=to,
            value=str(t.value),
            call_id=t.call_id,
            call=call,
            human=describe_transfer(token, from_addr, to, t.value, call),
        ))

    return ReportExplanations(calls_by_id=calls, transfers=explained)
