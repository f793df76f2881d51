from typing import List

from txlens.core.call_tree import CallType
from txlens.vuln.types import Evidence, Finding, Rule, RuleContext, Severity

LOW_LEVEL_CALL_TYPES = (CallType.CALL, CallType.DELEGATECALL, CallType.STATICCALL)


class UncheckedCallRule(Rule):
    """Flags low-level calls that reverted.

    Tracers usually mark the parent too when a revert bubbles up, so this
    is a prompt to check return-value handling rather than proof of a bug.
    """

    rule_id = "unchecked_call"
    title = "Unchecked low-level call"

    def run(self, context: RuleContext) -> List[Finding]:
        findings = []
        for c in context.flat:
            if not c.error or c.type not in LOW_LEVEL_CALL_TYPES:
                continue
            findings.append(Finding(
                id=f"unchecked_{c.id}",
                rule_id=self.rule_id,
                title="Low-level call reverted",
                severity=Severity.MEDIUM,
                confidence=0.55,
                description=(
                    "A low-level call reverted. Check that the caller validates the return value "
                    "or bubbles the revert, especially for call{value: ...}()."
                ),
                evidence=(Evidence("Reverted call", (c.id,), (c.error,)),),
                tags=("unchecked-call",),
            ))
        return findings
