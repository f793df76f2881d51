from typing import List

from txlens.core.call_tree import CallType
from txlens.vuln.types import Evidence, Finding, Rule, RuleContext, Severity


class DangerousDelegatecallRule(Rule):
    rule_id = "dangerous_delegatecall"
    title = "Potentially dangerous delegatecall"

    def run(self, context: RuleContext) -> List[Finding]:
        findings = []
        for c in context.flat:
            if c.type != CallType.DELEGATECALL:
                continue
            findings.append(Finding(
                id=f"dc_{c.id}",
                rule_id=self.rule_id,
                title="Delegatecall observed; verify target trust boundary",
                severity=Severity.HIGH,
                confidence=0.6,
                description=(
                    "Delegatecall executes callee code in the caller's storage context. Confirm the "
                    "target address is trusted or immutable and inputs cannot redirect execution."
                ),
                evidence=(Evidence("Delegatecall frame", (c.id,), (c.to or "unknown",)),),
                tags=("delegatecall",),
            ))
        return findings
