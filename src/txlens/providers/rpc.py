"""
JSON-RPC client.

Single calls go through web3's ``HTTPProvider.make_request``; batches are
posted as one JSON array with ``requests``. Both paths share the same
timeout and retry policy: transport failures and the transient node errors
-32000 / -32603 are retried with jittered exponential backoff, unless the
message says the transaction does not exist. Anything else is raised
immediately.
"""

import itertools
import random
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests
from web3 import Web3

from txlens.config import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_BACKOFF_JITTER,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    Settings,
)
from txlens.utils.exceptions import RPCError, RPCTransportError
from txlens.utils.logging import get_logger

log = get_logger("providers.rpc")

TRANSIENT_RPC_CODES = (-32000, -32603)
# Geth reports a missing transaction with the transient code -32000
NOT_FOUND_MARKERS = ("transaction not found", "unknown transaction")
DEFAULT_MAX_BATCH_SIZE = 50


def is_not_found_error(err: RPCError) -> bool:
    message = (err.message or "").lower()
    return any(m in message for m in NOT_FOUND_MARKERS)


def default_should_retry(err: Exception) -> bool:
    if isinstance(err, RPCTransportError):
        return True
    if isinstance(err, RPCError):
        if is_not_found_error(err):
            return False
        return err.code in TRANSIENT_RPC_CODES
    return False


def jittered_backoff(base: float, jitter: float, attempt: int) -> float:
    """Delay in seconds before retry number ``attempt`` (0-based)."""
    return base * (2 ** attempt) + (random.uniform(0, jitter) if jitter > 0 else 0.0)


class RPCClient:
    """
    Minimal JSON-RPC client with retries.

    Args:
        rpc_url: Node endpoint
        timeout: Per-request timeout in seconds
        retries: Extra attempts after the first failure
        backoff_base: Base delay in seconds, doubled on every attempt
        backoff_jitter: Upper bound of the random delay added per attempt
        headers: Extra HTTP headers (e.g. auth)
        force_single: Send batches as individual calls
        max_batch_size: Split larger batches into chunks of this size
        provider: Object with ``make_request(method, params)``; defaults to
            a web3 HTTPProvider for ``rpc_url``
        session: requests session used for batch posts
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        backoff_jitter: float = DEFAULT_BACKOFF_JITTER,
        headers: Optional[Dict[str, str]] = None,
        force_single: bool = False,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        should_retry: Optional[Callable[[Exception], bool]] = None,
        provider: Any = None,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff_base = backoff_base
        self.backoff_jitter = backoff_jitter
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.force_single = force_single
        self.max_batch_size = max(1, max_batch_size)
        self.should_retry = should_retry or default_should_retry
        self.provider = provider or Web3.HTTPProvider(
            rpc_url, request_kwargs={"timeout": timeout, "headers": self.headers}
        )
        self.session = session
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RPCClient":
        return cls(
            settings.rpc_url,
            timeout=settings.timeout,
            retries=settings.retries,
            backoff_base=settings.backoff_base,
            backoff_jitter=settings.backoff_jitter,
            headers=settings.headers,
            **kwargs,
        )

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Perform one JSON-RPC call and return its ``result``."""
        params = list(params or [])
        return self._with_retry(lambda: self._single_call(method, params), method)

    def batch_call(self, calls: Sequence[Tuple[str, Sequence[Any]]]) -> List[Any]:
        """
        Perform several calls, returning results in request order.

        Any error object in the batch raises RPCError for the whole batch.
        """
        calls = [(m, list(p or [])) for m, p in calls]
        if not calls:
            return []
        if len(calls) > self.max_batch_size:
            results: List[Any] = []
            for i in range(0, len(calls), self.max_batch_size):
                results.extend(self.batch_call(calls[i:i + self.max_batch_size]))
            return results
        if self.force_single or len(calls) == 1:
            return [self.call(m, p) for m, p in calls]
        methods = ",".join(sorted({m for m, _ in calls}))
        return self._with_retry(lambda: self._batch_attempt(calls), methods)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _single_call(self, method: str, params: List[Any]) -> Any:
        log.debug(f"RPC {method}")
        try:
            response = self.provider.make_request(method, params)
        except requests.exceptions.Timeout as e:
            raise RPCTransportError(
                f"RPC request timed out after {self.timeout}s",
                rpc_url=self.rpc_url, method=method, is_timeout=True,
            ) from e
        except requests.exceptions.RequestException as e:
            raise RPCTransportError(str(e), rpc_url=self.rpc_url, method=method) from e
        except ValueError as e:
            raise RPCTransportError(
                f"Failed to parse JSON response: {e}", rpc_url=self.rpc_url, method=method
            ) from e
        return self._unwrap(response, method)

    def _batch_attempt(self, calls: List[Tuple[str, List[Any]]]) -> List[Any]:
        requests_payload = [
            {"jsonrpc": "2.0", "id": self._next_id(), "method": m, "params": p}
            for m, p in calls
        ]
        poster = self.session or requests
        log.debug(f"RPC batch of {len(calls)}")
        try:
            resp = poster.post(
                self.rpc_url, json=requests_payload, headers=self.headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise RPCTransportError(
                f"RPC request timed out after {self.timeout}s", rpc_url=self.rpc_url, is_timeout=True
            ) from e
        except requests.exceptions.RequestException as e:
            raise RPCTransportError(str(e), rpc_url=self.rpc_url) from e

        if not resp.ok:
            raise RPCTransportError(
                f"HTTP {resp.status_code} {resp.reason}",
                rpc_url=self.rpc_url,
                http_status=resp.status_code,
                body_snippet=resp.text[:2000],
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise RPCTransportError(
                "Failed to parse JSON response", rpc_url=self.rpc_url, body_snippet=resp.text[:2000]
            ) from e

        items = body if isinstance(body, list) else [body]
        by_id: Dict[int, Dict[str, Any]] = {}
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get("id"), int):
                raise RPCTransportError("RPC response missing numeric id", rpc_url=self.rpc_url)
            if item["id"] in by_id:
                raise RPCTransportError(f"Duplicate JSON-RPC response id={item['id']}", rpc_url=self.rpc_url)
            by_id[item["id"]] = item

        results = []
        for req in requests_payload:
            item = by_id.get(req["id"])
            if item is None:
                raise RPCTransportError(
                    f"Missing RPC response for id={req['id']}", rpc_url=self.rpc_url, method=req["method"]
                )
            results.append(self._unwrap(item, req["method"]))
        return results

    def _unwrap(self, response: Any, method: str) -> Any:
        if not isinstance(response, dict):
            raise RPCTransportError("RPC response is not an object", rpc_url=self.rpc_url, method=method)
        if response.get("jsonrpc") not in (None, "2.0"):
            raise RPCTransportError(
                f"RPC response has invalid jsonrpc={response.get('jsonrpc')}",
                rpc_url=self.rpc_url, method=method,
            )
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise RPCError(
                    error.get("message", "RPC error"),
                    code=error.get("code"),
                    data=error.get("data"),
                    method=method,
                )
            raise RPCError(str(error), method=method)
        return response.get("result")

    def _with_retry(self, fn: Callable[[], Any], method: str) -> Any:
        for attempt in range(self.retries + 1):
            try:
                return fn()
            except (RPCError, RPCTransportError) as e:
                if attempt == self.retries or not self.should_retry(e):
                    raise
                delay = jittered_backoff(self.backoff_base, self.backoff_jitter, attempt)
                log.debug(f"Retrying {method} in {delay:.2f}s after: {e.message}")
                time.sleep(delay)
