"""Finding model and the rule interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from txlens.core.call_tree import CallNode


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Evidence:
    """
    Where in the trace a finding was observed.

    Attributes:
        title: Short description of the evidence
        call_path: Call ids from the root to the frame in question
        notes: Free-form details (addresses, error strings, signatures)
    """
    title: str
    call_path: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"title": self.title, "callPath": list(self.call_path)}
        if self.notes:
            result["notes"] = list(self.notes)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Evidence":
        return cls(
            title=data.get("title", ""),
            call_path=tuple(data.get("callPath") or ()),
            notes=tuple(data.get("notes") or ()),
        )


@dataclass(frozen=True)
class Finding:
    id: str
    rule_id: str
    title: str
    severity: Severity
    confidence: float
    description: str
    evidence: Tuple[Evidence, ...] = ()
    tool: str = "txlens"
    tags: Tuple[str, ...] = ()
    links: Tuple[str, ...] = ()

    @property
    def dedupe_key(self) -> str:
        paths = "|".join(">".join(e.call_path) for e in self.evidence)
        return f"{self.rule_id}:{self.title}:{paths}"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "ruleId": self.rule_id,
            "title": self.title,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "evidence": [e.to_dict() for e in self.evidence],
        }
        if self.tool != "txlens":
            result["tool"] = self.tool
        if self.tags:
            result["tags"] = list(self.tags)
        if self.links:
            result["links"] = list(self.links)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        return cls(
            id=data["id"],
            rule_id=data["ruleId"],
            title=data["title"],
            severity=Severity(data["severity"]),
            confidence=float(data.get("confidence", 0)),
            description=data.get("description", ""),
            evidence=tuple(Evidence.from_dict(e) for e in data.get("evidence") or []),
            tool=data.get("tool", "txlens"),
            tags=tuple(data.get("tags") or ()),
            links=tuple(data.get("links") or ()),
        )


@dataclass
class RuleContext:
    """Everything a rule may look at; selector_of and signature_of are optional."""
    root: CallNode
    flat: List[CallNode]
    selector_of: Optional[Callable[[CallNode], Optional[str]]] = None
    signature_of: Optional[Callable[[CallNode], Optional[str]]] = None
    _by_id: Optional[Dict[str, CallNode]] = field(default=None, repr=False)

    @property
    def by_id(self) -> Dict[str, CallNode]:
        if self._by_id is None:
            self._by_id = {c.id: c for c in self.flat}
        return self._by_id


class Rule(ABC):
    """A single heuristic run over the call tree."""

    rule_id: str = ""
    title: str = ""

    @abstractmethod
    def run(self, context: RuleContext) -> List[Finding]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.rule_id!r})"
