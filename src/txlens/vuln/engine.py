"""
Rule engine.

Runs a fixed list of rules over one call tree. A rule that raises does not
stop the run: its failure is reported as a low-severity finding and the
remaining rules still execute.
"""

from typing import Callable, Iterable, List, Optional

from txlens.core.call_tree import CallNode
from txlens.utils.logging import get_logger
from txlens.vuln.types import Finding, Rule, RuleContext, Severity

log = get_logger("vuln.engine")


def dedupe_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Drop findings whose (rule id, title, call paths) was already seen; first wins."""
    seen = set()
    out = []
    for f in findings:
        key = f.dedupe_key
        if key in seen:
            continue
        seen.add(key)
        out.append(f)
    return out


def rule_failure_finding(rule: Rule, exc: BaseException) -> Finding:
    return Finding(
        id=f"engine_error_{rule.rule_id}",
        rule_id=rule.rule_id,
        title=f"Rule failed: {rule.title}",
        severity=Severity.LOW,
        confidence=0.2,
        description=f"Rule threw error: {exc}",
        evidence=(),
    )


class VulnEngine:
    """
    Evaluate rules against a call tree.

    Example:
        >>> engine = VulnEngine(default_rules())
        >>> findings = engine.run(tree.root, tree.flat)
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = list(rules) if rules is not None else default_rules()

    def run(
        self,
        root: CallNode,
        flat: List[CallNode],
        selector_of: Optional[Callable[[CallNode], Optional[str]]] = None,
        signature_of: Optional[Callable[[CallNode], Optional[str]]] = None,
    ) -> List[Finding]:
        context = RuleContext(root=root, flat=flat, selector_of=selector_of, signature_of=signature_of)
        findings: List[Finding] = []
        for rule in self.rules:
            try:
                findings.extend(rule.run(context))
            except Exception as e:
                log.warning(f"Rule {rule.rule_id} failed: {e}")
                findings.append(rule_failure_finding(rule, e))
        return dedupe_findings(findings)


def default_rules() -> List[Rule]:
    from txlens.vuln.rules import (
        AccessControlRule,
        DangerousDelegatecallRule,
        ReentrancyRule,
        UncheckedCallRule,
    )
    return [ReentrancyRule(), UncheckedCallRule(), AccessControlRule(), DangerousDelegatecallRule()]
