"""
Small hex and quantity helpers shared by the analysis modules.

Tracers are inconsistent about how they encode numbers (hex strings,
decimal strings, JSON numbers), so everything numeric goes through
parse_quantity before reaching the core.
"""

import re
from typing import Any, Optional

_DECIMAL_RE = re.compile(r'^\d+$')
_HEX_RE = re.compile(r'^0x[0-9a-fA-F]*$')


def parse_quantity(value: Any) -> Optional[int]:
    """
    Parse a hex string, decimal string or integer into an int.

    Returns None for anything unparseable; callers must not treat a missing
    quantity as zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s.startswith(('0x', '0X')):
            if len(s) == 2 or not _HEX_RE.match('0x' + s[2:]):
                return None
            return int(s, 16)
        if _DECIMAL_RE.match(s):
            return int(s)
    return None


def parse_value(value: Any) -> int:
    """Parse a wei amount; unparseable or missing values count as 0."""
    parsed = parse_quantity(value)
    return parsed if parsed is not None else 0


def parse_log_index(value: Any, fallback: int) -> int:
    parsed = parse_quantity(value)
    return parsed if parsed is not None else fallback


def is_hex(value: Any) -> bool:
    return isinstance(value, str) and value.startswith('0x')


def normalize_hex(value: Optional[str]) -> str:
    """Lowercase a hex string and make sure it carries the 0x prefix."""
    if not value:
        return '0x'
    s = value.lower()
    return s if s.startswith('0x') else f'0x{s}'


def normalize_address(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ''
    return value.lower()


def address_from_topic(topic: str) -> str:
    """Last 20 bytes of a 32-byte topic, as a lowercase address."""
    t = normalize_hex(topic)
    return '0x' + t[2:][-40:].rjust(40, '0')


def hex_to_int(data: Optional[str]) -> int:
    """Big-endian integer from hex data; malformed or empty data is 0."""
    if not data:
        return 0
    s = data[2:] if data.lower().startswith('0x') else data
    if not s:
        return 0
    try:
        return int(s, 16)
    except ValueError:
        return 0


def selector_of_input(data: Optional[str]) -> Optional[str]:
    """4-byte function selector of calldata (``0x`` + 8 hex chars), lowercased."""
    if not data:
        return None
    s = data.lower()
    if not s.startswith('0x') or len(s) < 10:
        return None
    return s[:10]


def short_address(addr: Optional[str]) -> str:
    """Shorten an address for display: 0xabcd…1234."""
    if not addr:
        return '0x'
    s = addr.lower()
    if len(s) <= 10:
        return s
    return f"{s[:6]}…{s[-4:]}"
