"""
Vulnerability heuristics over call trees.

Provides the finding model, the rule engine and the built-in rules.
"""

from .types import Evidence, Finding, Rule, RuleContext, Severity
from .evidence import build_call_path, build_path_nodes
from .engine import VulnEngine, default_rules, dedupe_findings
from .external import map_slither_findings, merge_findings, parse_slither_json

__all__ = [
    'Evidence',
    'Finding',
    'Rule',
    'RuleContext',
    'Severity',
    'build_call_path',
    'build_path_nodes',
    'VulnEngine',
    'default_rules',
    'dedupe_findings',
    'map_slither_findings',
    'merge_findings',
    'parse_slither_json',
]
