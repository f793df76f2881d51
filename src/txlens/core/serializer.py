"""
JSON serialization for analysis reports.

Wei, gas and token amounts can exceed what JSON consumers read back
exactly as numbers, so every such integer is written as a decimal string.
Small structural counters (depths, call counts, weights, log indexes)
stay numeric.
"""

import json
from typing import Any, Dict, Union

from hexbytes import HexBytes

from txlens.core.report import AnalysisReport

# Integer fields that are always small and stay JSON numbers
NUMERIC_KEYS = frozenset({
    "depth",
    "totalCalls",
    "maxDepth",
    "weight",
    "logIndex",
    "chainId",
    "createdAtMs",
    "timestampMs",
    "numTokenTransfers",
    "numFindings",
    "count",
})

# Fields written as decimal strings that loads() turns back into ints
AMOUNT_KEYS = frozenset({
    "value",
    "gas",
    "gasUsed",
    "selfGasUsed",
    "delta",
    "deltaWei",
    "totalGasUsed",
})


class ReportSerializer:
    """Serializes AnalysisReport objects to JSON and back."""

    def _convert_to_serializable(self, obj: Any, key: str = "") -> Any:
        if isinstance(obj, bool) or obj is None:
            return obj
        if isinstance(obj, int):
            return obj if key in NUMERIC_KEYS else str(obj)
        if isinstance(obj, HexBytes):
            return obj.to_0x_hex()
        if isinstance(obj, bytes):
            return '0x' + obj.hex()
        if isinstance(obj, dict):
            return {k: self._convert_to_serializable(v, k) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self._convert_to_serializable(item, key) for item in obj]
        if hasattr(obj, 'to_dict'):
            return self._convert_to_serializable(obj.to_dict(), key)
        return obj

    def serialize_report(self, report: Union[AnalysisReport, Dict[str, Any]]) -> Dict[str, Any]:
        """Report as a JSON-ready dict with amounts as decimal strings."""
        data = report.to_dict() if isinstance(report, AnalysisReport) else report
        return self._convert_to_serializable(data)

    def to_json(self, report: Union[AnalysisReport, Dict[str, Any]], pretty: bool = True) -> str:
        return json.dumps(self.serialize_report(report), indent=2 if pretty else None, ensure_ascii=False)

    def _restore_amounts(self, obj: Any, key: str = "") -> Any:
        if isinstance(obj, dict):
            return {k: self._restore_amounts(v, k) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._restore_amounts(item, key) for item in obj]
        if key in AMOUNT_KEYS and isinstance(obj, str):
            s = obj[1:] if obj.startswith('-') else obj
            if s.isdigit():
                return int(obj)
        return obj

    def loads(self, text: str) -> Dict[str, Any]:
        """Parse serialized report JSON, turning amount strings back into ints."""
        return self._restore_amounts(json.loads(text))
