from typing import List

from txlens.vuln.types import Evidence, Finding, Rule, RuleContext, Severity

SENSITIVE_KEYWORDS = ("upgrade", "setOwner", "transferOwnership", "initialize", "setAdmin", "mint")


class AccessControlRule(Rule):
    """Flags admin-like functions; needs resolved signatures to do anything."""

    rule_id = "access_control"
    title = "Suspicious access-control pattern"

    def run(self, context: RuleContext) -> List[Finding]:
        if context.signature_of is None:
            return []
        keywords = [k.lower() for k in SENSITIVE_KEYWORDS]
        findings = []
        for c in context.flat:
            sig = context.signature_of(c) or ""
            if not sig:
                continue
            lowered = sig.lower()
            if not any(k in lowered for k in keywords):
                continue
            findings.append(Finding(
                id=f"ac_{c.id}",
                rule_id=self.rule_id,
                title="Sensitive function observed; verify access control",
                severity=Severity.MEDIUM,
                confidence=0.5,
                description=(
                    "Sensitive admin-like function observed in trace. Ensure proper access control "
                    "(onlyOwner/roles) and initialization protection."
                ),
                evidence=(Evidence("Sensitive call", (c.id,), (sig,)),),
                tags=("access-control",),
            ))
        return findings
