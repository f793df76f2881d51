"""
Revert payload decoding.

Classifies return/revert data into the standard Solidity error shapes.
Decoding never raises: anything that cannot be decoded comes back as
``Unknown`` with the raw hex kept for display.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from eth_abi.abi import decode
from eth_utils import decode_hex

ERROR_STRING_SELECTOR = "0x08c379a0"
PANIC_SELECTOR = "0x4e487b71"

PANIC_CODE_NAMES: Dict[int, str] = {
    0x01: "assert(false) / generic",
    0x11: "arithmetic overflow/underflow",
    0x12: "divide by zero",
    0x21: "invalid enum value",
    0x22: "storage byte array incorrectly encoded",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "memory overflow",
    0x51: "zero-initialized function pointer",
}


@dataclass(frozen=True)
class ErrorString:
    reason: str
    kind: str = "ErrorString"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason}


@dataclass(frozen=True)
class Panic:
    code: int
    name: Optional[str] = None
    kind: str = "Panic"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind, "code": str(self.code)}
        if self.name is not None:
            result["name"] = self.name
        return result


@dataclass(frozen=True)
class CustomError:
    selector: str
    kind: str = "CustomError"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "selector": self.selector}


@dataclass(frozen=True)
class Unknown:
    data: Optional[str] = None
    kind: str = "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind}
        if self.data is not None:
            result["data"] = self.data
        return result


RevertDecoded = Union[ErrorString, Panic, CustomError, Unknown]


def _to_bytes(data: Union[str, bytes]) -> Optional[bytes]:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not isinstance(data, str):
        return None
    s = data if data.startswith(("0x", "0X")) else "0x" + data
    try:
        return decode_hex(s)
    except (ValueError, TypeError):
        return None


def decode_revert_data(data: Optional[Union[str, bytes]]) -> RevertDecoded:
    """
    Decode a revert payload.

    Args:
        data: Hex string (with or without 0x) or raw bytes

    Returns:
        ErrorString, Panic, CustomError or Unknown
    """
    if data is None or data in ("", "0x", b""):
        return Unknown()

    raw = _to_bytes(data)
    if raw is None:
        return Unknown(data=str(data))
    hex_data = "0x" + raw.hex()
    if len(raw) < 4:
        return Unknown(data=hex_data)

    selector = "0x" + raw[:4].hex()
    body = raw[4:]

    if selector == ERROR_STRING_SELECTOR:
        try:
            (reason,) = decode(["string"], body)
            return ErrorString(reason=str(reason))
        except Exception:
            return Unknown(data=hex_data)

    if selector == PANIC_SELECTOR:
        try:
            (code,) = decode(["uint256"], body)
            return Panic(code=int(code), name=PANIC_CODE_NAMES.get(int(code)))
        except Exception:
            return Unknown(data=hex_data)

    # Custom errors need the contract ABI; only the selector is known here
    return CustomError(selector=selector)


def describe_revert(decoded: RevertDecoded) -> str:
    """One-line human readable description of a decoded revert."""
    if isinstance(decoded, ErrorString):
        return f'Error("{decoded.reason}")'
    if isinstance(decoded, Panic):
        label = decoded.name or "unknown panic code"
        return f"Panic(0x{decoded.code:02x}: {label})"
    if isinstance(decoded, CustomError):
        return f"CustomError({decoded.selector})"
    if decoded.data:
        return f"Reverted with data: {decoded.data}"
    return "Execution reverted"
