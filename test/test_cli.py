import json
import sys

import pytest
from eth_abi import encode

from txlens.cli.main import main

from trace_factory import ATTACKER, EOA, TOKEN, VAULT, WITHDRAW, receipt_log, reentrant_trace, transfer_log


def run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["txlens", *argv])
    return main()


def write_json(path, data):
    path.write_text(json.dumps(data))
    return str(path)


@pytest.fixture
def saved_tx(tmp_path):
    raw = reentrant_trace()
    raw["calls"][0]["logs"] = [transfer_log(TOKEN, VAULT, ATTACKER, 2 ** 200)]
    trace = write_json(tmp_path / "trace.json", {"jsonrpc": "2.0", "id": 1, "result": raw})
    receipt = write_json(tmp_path / "receipt.json", {
        "transactionHash": "0xfeed",
        "status": "0x1",
        "logs": [receipt_log(transfer_log(TOKEN, VAULT, ATTACKER, 2 ** 200), 0)],
    })
    return trace, receipt


@pytest.fixture
def vault_abi(tmp_path):
    abi = [{"type": "function", "name": "withdraw", "inputs": [{"name": "amount", "type": "uint256"}]}]
    return write_json(tmp_path / "Vault.json", {"abi": abi})


def test_analyze_file_writes_json_report(monkeypatch, capsys, saved_tx, vault_abi):
    trace, receipt = saved_tx

    code = run(monkeypatch, "analyze-file", "--trace", trace, "--receipt", receipt, "--abi", vault_abi,
               "--chain-id", "1", "-q")

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["meta"]["txHash"] == "0xfeed"
    assert report["meta"]["chainId"] == 1
    assert report["meta"]["network"] == "mainnet"
    assert report["trace"] == {"rootId": "c0", "totalCalls": 3, "maxDepth": 2}
    assert report["state"]["tokenTransfers"][0]["value"] == str(2 ** 200)
    assert report["state"]["tokenTransfers"][0]["callId"] == "c1"
    assert [f["ruleId"] for f in report["vuln"]["findings"]] == ["reentrancy"]
    assert report["graph"]["edges"][0]["label"] == "withdraw(uint256)"


def test_analyze_file_compact_output_to_file(monkeypatch, capsys, saved_tx, tmp_path):
    trace, _ = saved_tx
    out = tmp_path / "report.json"

    code = run(monkeypatch, "analyze-file", "-t", trace, "--compact", "--no-explain", "-o", str(out), "-q")

    assert code == 0
    assert capsys.readouterr().out == ""
    text = out.read_text()
    assert text.count("\n") == 1
    assert "debug" not in json.loads(text)


def test_analyze_file_pretty_summary_goes_to_stderr(monkeypatch, capsys, saved_tx):
    trace, receipt = saved_tx

    code = run(monkeypatch, "analyze-file", "-t", trace, "--receipt", receipt, "--pretty", "--chain-id", "137", "-q")

    captured = capsys.readouterr()
    assert code == 0
    json.loads(captured.out)
    assert "Possible reentrancy" in captured.err
    assert "137 (polygon)" in captured.err


def test_analyze_file_unwritable_output_is_json_error(monkeypatch, capsys, saved_tx, tmp_path):
    trace, _ = saved_tx
    out = tmp_path / "missing-dir" / "report.json"

    code = run(monkeypatch, "analyze-file", "-t", trace, "--no-explain", "-o", str(out), "-q")

    assert code == 1
    error = json.loads(capsys.readouterr().out)
    assert error["error"] is True
    assert error["type"] == "FileNotFoundError"
    assert not out.exists()


def test_analyze_file_missing_trace_is_json_error(monkeypatch, capsys, tmp_path):
    code = run(monkeypatch, "analyze-file", "--trace", str(tmp_path / "nope.json"), "-q")

    assert code == 1
    error = json.loads(capsys.readouterr().out)
    assert error["error"] is True
    assert error["type"] == "ParseError"


def test_analyze_file_rejects_unknown_payload(monkeypatch, capsys, tmp_path):
    trace = write_json(tmp_path / "trace.json", [1, 2, 3])

    assert run(monkeypatch, "analyze-file", "--trace", trace, "-q") == 1
    assert json.loads(capsys.readouterr().out)["type"] == "TraceFormatError"


def test_decode_revert_json(monkeypatch, capsys):
    data = "0x08c379a0" + encode(["string"], ["insufficient balance"]).hex()

    assert run(monkeypatch, "decode-revert", data, "--json") == 0
    assert json.loads(capsys.readouterr().out) == {"kind": "ErrorString", "reason": "insufficient balance"}


def test_decode_revert_text_and_unknown(monkeypatch, capsys):
    panic = "0x4e487b71" + encode(["uint256"], [0x11]).hex()

    assert run(monkeypatch, "decode-revert", panic) == 0
    assert "Panic(0x11: arithmetic overflow/underflow)" in capsys.readouterr().out

    assert run(monkeypatch, "decode-revert", "0x12") == 1
    assert "Reverted with data: 0x12" in capsys.readouterr().out


def test_subcommand_is_required(monkeypatch):
    with pytest.raises(SystemExit) as exc:
        run(monkeypatch)

    assert exc.value.code == 2
