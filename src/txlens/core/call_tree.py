"""
Call tree construction.

Turns a normalized trace into ``CallNode`` objects with stable pre-order ids
("c0", "c1", ...), depths and parent links. A single malformed frame never
aborts the build: missing fields fall back to empty defaults and unparseable
quantities become None.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from txlens.parsers.trace import NormalizedTrace, normalize_trace
from txlens.utils.helpers import parse_quantity, selector_of_input


class CallType(str, Enum):
    CALL = "CALL"
    STATICCALL = "STATICCALL"
    DELEGATECALL = "DELEGATECALL"
    CALLCODE = "CALLCODE"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"
    SELFDESTRUCT = "SELFDESTRUCT"

    @classmethod
    def coerce(cls, value: Any) -> "CallType":
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.CALL


@dataclass
class TraceLog:
    """A log emitted directly by one call frame."""
    address: str
    topics: List[str] = field(default_factory=list)
    data: str = "0x"

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "topics": list(self.topics), "data": self.data}


@dataclass
class CallNode:
    """One CALL/CREATE/SELFDESTRUCT frame of a transaction."""
    id: str
    type: CallType
    from_addr: str
    depth: int
    to: Optional[str] = None
    input: Optional[str] = None
    output: Optional[str] = None
    value: Optional[int] = None
    gas: Optional[int] = None
    gas_used: Optional[int] = None
    error: Optional[str] = None
    revert_reason: Optional[str] = None
    parent_id: Optional[str] = None
    children: List["CallNode"] = field(default_factory=list)
    logs: List[TraceLog] = field(default_factory=list)

    @property
    def selector(self) -> Optional[str]:
        return selector_of_input(self.input)

    def to_dict(self) -> Dict[str, Any]:
        """Nested dict form; quantities are left as ints for the serializer."""
        result: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "from": self.from_addr,
            "depth": self.depth,
        }
        optional = {
            "to": self.to,
            "input": self.input,
            "output": self.output,
            "value": self.value,
            "gas": self.gas,
            "gasUsed": self.gas_used,
            "error": self.error,
            "revertReason": self.revert_reason,
            "parentId": self.parent_id,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        result["children"] = [c.to_dict() for c in self.children]
        if self.logs:
            result["logs"] = [l.to_dict() for l in self.logs]
        return result


@dataclass
class CallTree:
    """Result of build_call_tree: the root plus its pre-order flattening."""
    root: CallNode
    flat: List[CallNode]

    @property
    def max_depth(self) -> int:
        return max((c.depth for c in self.flat), default=0)

    def by_id(self) -> Dict[str, CallNode]:
        return {c.id: c for c in self.flat}


def iter_preorder(root: CallNode) -> Iterator[CallNode]:
    """Yield frames in pre-order without recursion (traces can be deep)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def build_call_tree(trace: Union[NormalizedTrace, Dict[str, Any]]) -> CallTree:
    """
    Build the call tree for a normalized trace.

    Args:
        trace: NormalizedTrace, or a raw callTracer dict which is normalized first

    Returns:
        CallTree with ids assigned in pre-order DFS order
    """
    if not isinstance(trace, NormalizedTrace):
        trace = normalize_trace(trace)

    flat: List[CallNode] = []
    root: Optional[CallNode] = None

    # Explicit stack instead of recursion: EVM call depth can exceed
    # Python's default recursion limit. Children are pushed in reverse so
    # they are popped (and numbered) in their original order.
    stack = [(trace, 0, None)]
    while stack:
        src, depth, parent = stack.pop()
        node = CallNode(
            id=f"c{len(flat)}",
            type=CallType.coerce(src.type or "CALL"),
            from_addr=src.from_addr or "",
            depth=depth,
            to=src.to or None,
            input=src.input,
            output=src.output,
            value=parse_quantity(src.value),
            gas=parse_quantity(src.gas),
            gas_used=parse_quantity(src.gas_used),
            error=src.error,
            revert_reason=src.revert_reason,
            parent_id=parent.id if parent else None,
            logs=[TraceLog(l.address, list(l.topics), l.data or "0x") for l in src.logs],
        )
        flat.append(node)
        if parent is None:
            root = node
        else:
            parent.children.append(node)
        for child in reversed(src.calls):
            stack.append((child, depth + 1, node))

    return CallTree(root=root, flat=flat)
