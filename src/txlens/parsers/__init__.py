"""
Parsers module for txlens.

Turns raw external payloads (tracer output, revert data) into the
shapes the analysis core works with.
"""

from .trace import (
    TraceFlavor,
    NormalizedTrace,
    NormalizedLog,
    normalize_trace,
    detect_flavor,
)
from .revert import (
    ErrorString,
    Panic,
    CustomError,
    Unknown,
    RevertDecoded,
    decode_revert_data,
    describe_revert,
    PANIC_CODE_NAMES,
)

__all__ = [
    'TraceFlavor',
    'NormalizedTrace',
    'NormalizedLog',
    'normalize_trace',
    'detect_flavor',
    'ErrorString',
    'Panic',
    'CustomError',
    'Unknown',
    'RevertDecoded',
    'decode_revert_data',
    'describe_revert',
    'PANIC_CODE_NAMES',
]
