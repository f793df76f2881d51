"""
Findings from external static analyzers.

Only already-produced JSON is consumed here; running the analyzer is left
to the caller. Slither detector results are mapped onto the same Finding
model the trace rules use, so both can be merged into one report.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Union

from txlens.utils.exceptions import ParseError
from txlens.utils.logging import get_logger
from txlens.vuln.types import Evidence, Finding, Severity

log = get_logger("vuln.external")

SLITHER_IMPACT_SEVERITY = {
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "low": Severity.LOW,
    "informational": Severity.LOW,
    "info": Severity.LOW,
    "optimization": Severity.LOW,
}

SLITHER_CONFIDENCE = {
    "high": 0.9,
    "medium": 0.6,
    "low": 0.3,
}


def parse_slither_json(text: str, source: Optional[str] = None) -> Dict[str, Any]:
    """Parse slither's ``--json`` output; raises ParseError on invalid JSON."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse Slither JSON: {e}", source=source)
    if not isinstance(data, dict):
        raise ParseError("Slither JSON must be an object", source=source)
    return data


def _locations(detector: Dict[str, Any]) -> List[str]:
    out = []
    for element in detector.get("elements") or []:
        src = (element or {}).get("source_mapping") or {}
        filename = (
            src.get("filename_relative")
            or src.get("filename_absolute")
            or src.get("filename_short")
            or src.get("filename")
        )
        lines = src.get("lines") or []
        if not filename and not lines:
            continue
        loc = filename or "?"
        if lines:
            loc += f":{lines[0]}" if lines[0] == lines[-1] else f":{lines[0]}-{lines[-1]}"
        out.append(loc)
    return out


def map_slither_findings(slither_output: Union[Dict[str, Any], str]) -> List[Finding]:
    """
    Convert slither detector results into findings.

    Args:
        slither_output: Parsed slither JSON, or the raw JSON text

    Returns:
        One finding per detector result, tagged with tool "slither"
    """
    if isinstance(slither_output, str):
        slither_output = parse_slither_json(slither_output)

    detectors = ((slither_output or {}).get("results") or {}).get("detectors") or []
    findings = []
    for i, d in enumerate(detectors):
        if not isinstance(d, dict):
            continue
        check = str(d.get("check") or "slither-unknown")
        description = d.get("description") if isinstance(d.get("description"), str) else ""
        first_line = description.split("\n", 1)[0].strip() if description else ""
        title = first_line or check

        locations = _locations(d)
        evidence = (Evidence(title="Source locations", notes=tuple(locations)),) if locations else ()

        findings.append(Finding(
            id=f"slither_{check}_{i}",
            rule_id=check,
            title=title,
            severity=SLITHER_IMPACT_SEVERITY.get(str(d.get("impact") or "").lower(), Severity.MEDIUM),
            confidence=SLITHER_CONFIDENCE.get(str(d.get("confidence") or "").lower(), 0.5),
            description=description,
            evidence=evidence,
            tool="slither",
            tags=(check,),
        ))

    log.debug(f"Mapped {len(findings)} slither finding(s)")
    return findings


def merge_findings(*groups: Iterable[Finding]) -> List[Finding]:
    """Concatenate finding lists, keeping the first of any (tool, id) pair."""
    seen = set()
    merged = []
    for group in groups:
        for f in group or []:
            key = (f.tool, f.id)
            if key in seen:
                continue
            seen.add(key)
            merged.append(f)
    return merged
