"""
Selector and event-topic signature lookup.

Queries OpenChain first (it filters junk entries) and falls back to
4byte.directory. Lookups are best-effort: network failures are logged and
produce no hits.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from txlens.providers.cache import Cache
from txlens.utils.logging import get_logger

log = get_logger("providers.signatures")

OPENCHAIN_BASE_URL = "https://api.openchain.xyz"
FOURBYTE_BASE_URL = "https://www.4byte.directory"

_SELECTOR_RE = re.compile(r'^0x[0-9a-f]{8}$')
_TOPIC_RE = re.compile(r'^0x[0-9a-f]{64}$')

FUNCTION = "function"
EVENT = "event"


@dataclass
class SignatureHit:
    text: str
    source: str
    meta: Dict[str, Any] = field(default_factory=dict)


def _norm(value: str) -> str:
    s = value.strip().lower()
    return s if s.startswith('0x') else f'0x{s}'


class SignatureLookup:
    """
    Resolve 4-byte selectors and 32-byte event topics to text signatures.

    Args:
        cache: Optional cache; hit lists are stored as plain JSON
        timeout: HTTP timeout per request in seconds
        use_openchain: Query OpenChain
        use_4byte: Query 4byte.directory
        max_hits: Maximum number of candidates returned per lookup
        session: requests session (injectable for tests)
    """

    def __init__(
        self,
        cache: Optional[Cache] = None,
        timeout: float = 4.0,
        use_openchain: bool = True,
        use_4byte: bool = True,
        max_hits: int = 5,
        openchain_base_url: str = OPENCHAIN_BASE_URL,
        fourbyte_base_url: str = FOURBYTE_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.cache = cache
        self.timeout = timeout
        self.use_openchain = use_openchain
        self.use_4byte = use_4byte
        self.max_hits = max_hits
        self.openchain_base_url = openchain_base_url.rstrip('/')
        self.fourbyte_base_url = fourbyte_base_url.rstrip('/')
        self.session = session or requests.Session()

    def lookup_function(self, selector: str) -> List[SignatureHit]:
        sel = _norm(selector)
        if not _SELECTOR_RE.match(sel):
            raise ValueError(f"Invalid 4-byte selector: {selector}")
        return self._lookup(FUNCTION, sel)

    def lookup_event(self, topic: str) -> List[SignatureHit]:
        t = _norm(topic)
        if not _TOPIC_RE.match(t):
            raise ValueError(f"Invalid 32-byte topic: {topic}")
        return self._lookup(EVENT, t)

    def lookup_selector(self, selector: str) -> Optional[str]:
        """First known text signature for a function selector, or None."""
        try:
            hits = self.lookup_function(selector)
        except ValueError:
            return None
        return hits[0].text if hits else None

    def _lookup(self, kind: str, hex_value: str) -> List[SignatureHit]:
        if self.cache is None:
            return self._lookup_uncached(kind, hex_value)
        rows = self.cache.get_or_set(
            f"sig:{kind}:{hex_value}",
            lambda: [h.__dict__ for h in self._lookup_uncached(kind, hex_value)] or None,
        )
        return [SignatureHit(**r) for r in rows or []]

    def _lookup_uncached(self, kind: str, hex_value: str) -> List[SignatureHit]:
        hits: List[SignatureHit] = []
        sources = []
        if self.use_openchain:
            sources.append(("openchain", self._query_openchain))
        if self.use_4byte:
            sources.append(("4byte", self._query_4byte))

        for name, query in sources:
            try:
                hits.extend(query(kind, hex_value))
            except (requests.exceptions.RequestException, ValueError) as e:
                log.debug(f"{name} lookup failed for {hex_value}: {e}")
                continue
            if len(hits) >= self.max_hits:
                break

        seen = set()
        unique = []
        for h in hits:
            if h.text in seen:
                continue
            seen.add(h.text)
            unique.append(h)
        return unique[:self.max_hits]

    def _get_json(self, url: str, params: Dict[str, str]) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _query_openchain(self, kind: str, hex_value: str) -> List[SignatureHit]:
        data = self._get_json(
            f"{self.openchain_base_url}/signature-database/v1/lookup",
            {kind: hex_value, "filter": "true"},
        )
        bucket = ((data or {}).get("result") or {}).get(kind) or {}
        entries = bucket.get(hex_value) or []
        return [
            SignatureHit(e["name"], "openchain", {"filtered": e.get("filtered")})
            for e in entries if isinstance(e, dict) and isinstance(e.get("name"), str)
        ]

    def _query_4byte(self, kind: str, hex_value: str) -> List[SignatureHit]:
        path = "/api/v1/signatures/" if kind == FUNCTION else "/api/v1/event-signatures/"
        data = self._get_json(f"{self.fourbyte_base_url}{path}", {"hex_signature": hex_value})
        results = (data or {}).get("results") or []
        # Lower id means older entry, which is usually the canonical one
        results = sorted((r for r in results if isinstance(r, dict)), key=lambda r: r.get("id", 0))
        return [
            SignatureHit(r["text_signature"], "4byte", {"id": r.get("id")})
            for r in results if isinstance(r.get("text_signature"), str)
        ]
