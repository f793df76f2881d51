import pytest
import requests

from txlens.config import Settings
from txlens.providers.rpc import RPCClient, default_should_retry, is_not_found_error, jittered_backoff
from txlens.utils.exceptions import RPCError, RPCTransportError


class FakeProvider:
    """Stands in for web3's HTTPProvider: replays scripted responses or raises."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def make_request(self, method, params):
        self.requests.append((method, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeResponse:
    def __init__(self, body, status_code=200, text=""):
        self.body = body
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = "OK" if self.ok else "Bad Gateway"
        self.text = text

    def json(self):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body


class FakeSession:
    def __init__(self, reply):
        self.reply = reply
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append(json)
        return FakeResponse(self.reply(json))


def client(provider=None, session=None, **kwargs):
    kwargs.setdefault("backoff_base", 0)
    kwargs.setdefault("backoff_jitter", 0)
    return RPCClient("http://node.invalid", provider=provider or FakeProvider(), session=session, **kwargs)


def test_call_returns_result():
    provider = FakeProvider({"jsonrpc": "2.0", "id": 1, "result": "0x1"})

    assert client(provider).call("eth_chainId") == "0x1"
    assert provider.requests == [("eth_chainId", [])]


def test_call_raises_rpc_error_without_retry_for_permanent_codes():
    provider = FakeProvider({"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "method not found"}})

    with pytest.raises(RPCError) as exc:
        client(provider, retries=3).call("debug_traceTransaction", ["0x1"])

    assert exc.value.code == -32601
    assert len(provider.requests) == 1


def test_transient_errors_are_retried():
    provider = FakeProvider(
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}},
        requests.exceptions.ConnectionError("reset"),
        {"jsonrpc": "2.0", "id": 3, "result": {"ok": True}},
    )

    assert client(provider, retries=2).call("eth_getTransactionReceipt", ["0x1"]) == {"ok": True}
    assert len(provider.requests) == 3


def test_missing_transaction_is_not_retried():
    provider = FakeProvider(
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "transaction not found"}},
        {"jsonrpc": "2.0", "id": 2, "result": {}},
    )

    with pytest.raises(RPCError) as exc:
        client(provider, retries=3).call("debug_traceTransaction", ["0xdead"])

    assert exc.value.code == -32000
    assert len(provider.requests) == 1


def test_retries_are_bounded():
    provider = FakeProvider(*[requests.exceptions.Timeout("slow")] * 3)

    with pytest.raises(RPCTransportError) as exc:
        client(provider, retries=2).call("eth_blockNumber")

    assert exc.value.is_timeout
    assert len(provider.requests) == 3


def test_invalid_jsonrpc_version_is_transport_error():
    provider = FakeProvider({"jsonrpc": "1.0", "id": 1, "result": "0x1"})

    with pytest.raises(RPCTransportError):
        client(provider, retries=0).call("eth_chainId")


def test_batch_returns_results_in_request_order():
    def reply(payload):
        # Nodes may answer a batch out of order
        return [{"jsonrpc": "2.0", "id": r["id"], "result": r["method"]} for r in reversed(payload)]

    session = FakeSession(reply)
    results = client(session=session).batch_call([("eth_chainId", []), ("eth_blockNumber", [])])

    assert results == ["eth_chainId", "eth_blockNumber"]
    assert len(session.posts) == 1


def test_batch_missing_response_fails():
    session = FakeSession(lambda payload: [{"jsonrpc": "2.0", "id": payload[0]["id"], "result": 1}])

    with pytest.raises(RPCTransportError, match="Missing RPC response"):
        client(session=session, retries=0).batch_call([("a", []), ("b", [])])


def test_batch_duplicate_ids_fail():
    session = FakeSession(lambda payload: [{"jsonrpc": "2.0", "id": payload[0]["id"], "result": 1}] * 2)

    with pytest.raises(RPCTransportError, match="Duplicate"):
        client(session=session, retries=0).batch_call([("a", []), ("b", [])])


def test_batch_is_chunked():
    session = FakeSession(lambda payload: [{"jsonrpc": "2.0", "id": r["id"], "result": r["params"][0]} for r in payload])

    # A trailing chunk of one goes out as a single call
    provider = FakeProvider({"jsonrpc": "2.0", "id": 1, "result": 4})

    results = client(provider, session=session, max_batch_size=2).batch_call([("m", [i]) for i in range(5)])

    assert results == [0, 1, 2, 3, 4]
    assert [len(p) for p in session.posts] == [2, 2]
    assert provider.requests == [("m", [4])]


def test_force_single_uses_provider():
    provider = FakeProvider({"jsonrpc": "2.0", "id": 1, "result": 1}, {"jsonrpc": "2.0", "id": 2, "result": 2})

    assert client(provider, force_single=True).batch_call([("a", []), ("b", [])]) == [1, 2]


def test_retry_policy():
    assert default_should_retry(RPCTransportError("down"))
    assert default_should_retry(RPCError("busy", code=-32603))
    assert not default_should_retry(RPCError("bad params", code=-32602))
    assert not default_should_retry(RPCError("transaction not found", code=-32000))
    assert is_not_found_error(RPCError("Unknown Transaction 0x1", code=-32000))
    assert not default_should_retry(ValueError("other"))


def test_backoff_grows_exponentially():
    assert jittered_backoff(0.5, 0, 0) == 0.5
    assert jittered_backoff(0.5, 0, 3) == 4.0
    assert 1.0 <= jittered_backoff(1.0, 0.2, 0) <= 1.2


def test_from_settings():
    settings = Settings(rpc_url="http://example.invalid", timeout=3.0, retries=5)

    rpc = RPCClient.from_settings(settings, provider=FakeProvider())

    assert rpc.rpc_url == "http://example.invalid"
    assert rpc.timeout == 3.0
    assert rpc.retries == 5
