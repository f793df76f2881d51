"""
ABI-based calldata and event decoding.

ABIs are loaded from JSON files (plain ABI arrays or Foundry/Hardhat
artifacts with an ``abi`` key). Functions are indexed by 4-byte selector
and events by topic-0, both computed with keccak over the canonical
signature.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import decode
from eth_hash.auto import keccak
from eth_utils import to_checksum_address

from txlens.core.log_attribution import ReceiptLog
from txlens.utils.exceptions import ABIParseError
from txlens.utils.helpers import normalize_hex
from txlens.utils.logging import get_logger

log = get_logger("providers.abi")


@dataclass
class DecodedCall:
    selector: str
    signature: Optional[str] = None
    name: Optional[str] = None
    args: List[Tuple[str, Any]] = field(default_factory=list)


@dataclass
class DecodedLog:
    address: str
    topic0: str
    signature: Optional[str] = None
    name: Optional[str] = None
    args: List[Tuple[str, Any]] = field(default_factory=list)


def format_abi_type(abi_input: Dict[str, Any]) -> str:
    """Canonical type string, expanding tuples into their component types."""
    abi_type = abi_input['type']
    if abi_type.startswith('tuple'):
        components = ','.join(format_abi_type(c) for c in abi_input.get('components', []))
        return f"({components}){abi_type[len('tuple'):]}"
    return abi_type


def _format_value(abi_type: str, value: Any) -> Any:
    if abi_type == 'address' and isinstance(value, str):
        try:
            return to_checksum_address(value)
        except ValueError:
            return value
    if isinstance(value, bytes):
        return '0x' + value.hex()
    if isinstance(value, (list, tuple)):
        return [_format_value('', v) for v in value]
    return value


class AbiDecoder:
    """Decode calldata and logs against one or more ABIs."""

    def __init__(self, abi: Optional[List[Dict[str, Any]]] = None):
        self.functions: Dict[str, Dict[str, Any]] = {}
        self.function_signatures: Dict[str, str] = {}
        self.events: Dict[str, Dict[str, Any]] = {}
        self.event_signatures: Dict[str, str] = {}
        if abi:
            self.add_abi(abi)

    def add_abi(self, abi: List[Dict[str, Any]]) -> None:
        for item in abi:
            if not isinstance(item, dict) or 'name' not in item:
                continue
            input_types = ','.join(format_abi_type(i) for i in item.get('inputs', []))
            signature = f"{item['name']}({input_types})"
            digest = keccak(signature.encode())
            if item.get('type') == 'function':
                selector = '0x' + digest[:4].hex()
                self.functions[selector] = item
                self.function_signatures[selector] = signature
            elif item.get('type') == 'event':
                topic = '0x' + digest.hex()
                self.events[topic] = item
                self.event_signatures[topic] = signature

    def load_abi(self, abi_path: str) -> None:
        """
        Load an ABI file.

        Raises:
            ABIParseError: The file is unreadable or holds no ABI array
        """
        try:
            with open(abi_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ABIParseError(f"Could not read ABI: {e}", source=abi_path) from e

        if isinstance(data, dict) and 'abi' in data:
            data = data['abi']
        if not isinstance(data, list):
            raise ABIParseError("Unknown ABI format", source=abi_path)
        self.add_abi(data)
        log.debug(f"Loaded {len(self.functions)} function(s), {len(self.events)} event(s) from {abi_path}")

    def signature_of_selector(self, selector: Optional[str]) -> Optional[str]:
        if not selector:
            return None
        return self.function_signatures.get(selector.lower())

    # Same shape as SignatureLookup so either can label calls
    lookup_selector = signature_of_selector

    def decode_calldata(self, data: Optional[str]) -> Optional[DecodedCall]:
        """
        Decode calldata. Returns None for empty input; unknown selectors or
        undecodable arguments give a DecodedCall with only what is known.
        """
        if not data or len(data) < 10:
            return None
        data = normalize_hex(data)
        selector = data[:10]
        item = self.functions.get(selector)
        if item is None:
            return DecodedCall(selector=selector)

        result = DecodedCall(selector=selector, signature=self.function_signatures[selector], name=item['name'])
        inputs = item.get('inputs', [])
        if not inputs:
            return result
        try:
            values = decode([format_abi_type(i) for i in inputs], bytes.fromhex(data[10:]))
        except Exception as e:
            log.debug(f"Could not decode arguments of {result.signature}: {e}")
            return result
        result.args = [
            (i.get('name') or f'param{n}', _format_value(i['type'], v))
            for n, (i, v) in enumerate(zip(inputs, values))
        ]
        return result

    def decode_log(self, entry: Any) -> DecodedLog:
        """Decode a log; indexed dynamic values stay as their topic hash."""
        if not isinstance(entry, ReceiptLog):
            entry = ReceiptLog.from_dict(entry)
        topic0 = entry.topics[0] if entry.topics else '0x'
        decoded = DecodedLog(address=entry.address, topic0=topic0)
        item = self.events.get(topic0)
        if item is None:
            return decoded
        decoded.signature = self.event_signatures[topic0]
        decoded.name = item['name']

        inputs = item.get('inputs', [])
        indexed = [i for i in inputs if i.get('indexed')]
        plain = [i for i in inputs if not i.get('indexed')]
        try:
            plain_values = decode([format_abi_type(i) for i in plain], bytes.fromhex(entry.data[2:])) if plain else ()
            topic_values = {}
            for i, topic in zip(indexed, entry.topics[1:]):
                abi_type = format_abi_type(i)
                if abi_type in ('string', 'bytes') or abi_type.endswith(']') or abi_type.startswith('('):
                    topic_values[id(i)] = topic
                else:
                    topic_values[id(i)] = decode([abi_type], bytes.fromhex(topic[2:]))[0]
        except Exception as e:
            log.debug(f"Could not decode event {decoded.signature}: {e}")
            return decoded

        plain_iter = iter(plain_values)
        for n, i in enumerate(inputs):
            value = topic_values.get(id(i)) if i.get('indexed') else next(plain_iter, None)
            decoded.args.append((i.get('name') or f'param{n}', _format_value(i['type'], value)))
        return decoded
