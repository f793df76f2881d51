from typing import Dict, List, Optional

from txlens.core.call_tree import CallNode
from txlens.vuln.evidence import build_path_nodes
from txlens.vuln.types import Evidence, Finding, Rule, RuleContext, Severity


def _same_target(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def find_ancestor_with_same_to(by_id: Dict[str, CallNode], node: CallNode) -> Optional[CallNode]:
    """Nearest ancestor that called the same address as ``node``."""
    cur = by_id.get(node.parent_id) if node.parent_id else None
    while cur is not None:
        if _same_target(cur.to, node.to):
            return cur
        cur = by_id.get(cur.parent_id) if cur.parent_id else None
    return None


def has_external_hop(path: List[CallNode], ancestor_id: str) -> bool:
    """
    True when some frame after the ancestor on ``path`` targets a different address.

    ``path`` runs from the root to the re-entered frame.
    """
    idx = next((i for i, c in enumerate(path) if c.id == ancestor_id), -1)
    if idx < 0:
        return False
    target = (path[idx].to or "").lower()
    if not target:
        return False
    for c in path[idx + 1:]:
        t = (c.to or "").lower()
        if t and t != target:
            return True
    return False


class ReentrancyRule(Rule):
    """Flags a contract being entered again further down its own call stack."""

    rule_id = "reentrancy"
    title = "Potential reentrancy pattern"

    def run(self, context: RuleContext) -> List[Finding]:
        by_id = context.by_id
        findings = []
        for node in context.flat:
            if not node.to:
                continue
            ancestor = find_ancestor_with_same_to(by_id, node)
            if ancestor is None:
                continue
            path = build_path_nodes(by_id, node.id)
            if not has_external_hop(path, ancestor.id):
                continue
            findings.append(Finding(
                id=f"reentrancy_{ancestor.id}_{node.id}",
                rule_id=self.rule_id,
                title="Possible reentrancy (same contract re-entered)",
                severity=Severity.HIGH,
                confidence=0.65,
                description=(
                    "Call stack shows the same target contract being entered again after an "
                    "external call. Check that state is updated before the external call."
                ),
                evidence=(Evidence(
                    title="Re-entered call path",
                    call_path=tuple(c.id for c in path),
                    notes=(f"ancestor={ancestor.id}", f"reentered={node.id}"),
                ),),
                tags=("reentrancy",),
            ))
        return findings
