"""Human-readable report summaries for the terminal (written to stderr)."""

import sys
from typing import TextIO

from txlens.core.report import AnalysisReport
from txlens.utils.colors import address, bold, bullet_point, call_id, dim, gas_value, info, severity
from txlens.utils.helpers import short_address

MAX_ROWS = 5


def print_headline(text: str, stream: TextIO = sys.stderr) -> None:
    print(bold(text), file=stream)
    print(dim("=" * len(text)), file=stream)


def print_section(title: str, stream: TextIO = sys.stderr) -> None:
    print(f"\n{bold(title)}", file=stream)


def print_kv(key: str, value, stream: TextIO = sys.stderr) -> None:
    print(f"  {dim(key + ':'):<24} {value}", file=stream)


def print_report_summary(report: AnalysisReport, stream: TextIO = sys.stderr) -> None:
    print_headline("txlens analysis", stream)
    if report.meta.tx_hash:
        print_kv("tx", info(report.meta.tx_hash), stream)
    if report.meta.chain_id is not None:
        label = f"{report.meta.chain_id} ({report.meta.network})" if report.meta.network else report.meta.chain_id
        print_kv("chain", label, stream)
    print_kv("calls", report.trace.total_calls, stream)
    print_kv("max depth", report.trace.max_depth, stream)
    print_kv("token transfers", len(report.state.token_transfers), stream)
    print_kv("findings", len(report.findings), stream)

    if report.gas and report.gas.by_contract:
        print_section("Gas by contract", stream)
        for contract, gas in report.gas.by_contract[:MAX_ROWS]:
            print(f"  {gas_value(gas)}  {address(contract)}", file=stream)

    if report.state.asset_deltas:
        print_section("Balance changes", stream)
        for change in report.state.asset_deltas[:MAX_ROWS * 2]:
            asset = "native" if change.asset.kind == "native" else short_address(change.asset.token)
            sign = "+" if change.delta > 0 else ""
            print(bullet_point(f"{address(change.address)} {sign}{change.delta} {dim(asset)}"), file=stream)

    if report.findings:
        print_section("Findings", stream)
        for f in report.findings:
            where = f.evidence[0].call_path[-1] if f.evidence and f.evidence[0].call_path else ""
            suffix = f" @ {call_id(where)}" if where else ""
            print(bullet_point(f"[{severity(f.severity.value)}] {f.title}{suffix}"), file=stream)
