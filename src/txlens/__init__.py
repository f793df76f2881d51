"""
txlens - post-hoc EVM transaction analyzer
"""

__version__ = "0.1.0"

# Main entry point
from .cli.main import main

# Core components
from .core import (
    CallNode,
    CallTree,
    build_call_tree,
    AnalysisReport,
    ReportSerializer,
    TransactionAnalyzer,
)

# Parsers
from .parsers import (
    TraceFlavor,
    NormalizedTrace,
    normalize_trace,
    decode_revert_data,
)

# Vulnerability engine
from .vuln import Finding, Severity, VulnEngine

__all__ = [
    '__version__',
    'main',
    'CallNode',
    'CallTree',
    'build_call_tree',
    'AnalysisReport',
    'ReportSerializer',
    'TransactionAnalyzer',
    'TraceFlavor',
    'NormalizedTrace',
    'normalize_trace',
    'decode_revert_data',
    'Finding',
    'Severity',
    'VulnEngine',
]
