from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

from cli.config import EXIT_DECODE_FAILURE, EXIT_LENGTH_MISMATCH, EXIT_MATCH, EXIT_MISMATCH

_EXIT_CODES = {
    "match": EXIT_MATCH,
    "mismatch": EXIT_MISMATCH,
    "length_mismatch": EXIT_LENGTH_MISMATCH,
    "decode_failure": EXIT_DECODE_FAILURE,
}

_RECORD_KEYS = (
    "id",
    "tx_type",
    "from_user_id",
    "to_user_id",
    "amount",
    "currency",
    "timestamp",
    "status",
    "description",
)


def exit_code_for(report: Dict[str, Any]) -> int:
    return _EXIT_CODES[report["status"]]


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _echo_record(record: Dict[str, Any], indent: str = "  ") -> None:
    for key in _RECORD_KEYS:
        value = record.get(key)
        if key == "description":
            value = repr(value)
        typer.echo(f"{indent}{key}: {value}")


def _echo_mismatch(detail: Dict[str, Any]) -> None:
    # Indexes are shown 1-based, matching how operators count transactions.
    differing: List[str] = detail.get("differing_fields") or []
    typer.echo(f"Transaction #{detail['index'] + 1} differs in: {', '.join(differing)}")
    left = detail.get("left") or {}
    right = detail.get("right") or {}
    for field in differing:
        typer.echo(f"  {field}: {left.get(field)!r} != {right.get(field)!r}")


def render_report(report: Dict[str, Any], first_label: str = "first", second_label: str = "second") -> None:
    status = report["status"]
    echo_heading("Comparison Result")
    echo_key_values([("status", status)])
    typer.echo()

    if status == "match":
        typer.secho(
            f"Transactions in {first_label} and {second_label} are identical "
            f"({report.get('record_count')} records).",
            fg=typer.colors.GREEN,
        )
    elif status == "mismatch":
        _echo_mismatch(report["mismatch"])
    elif status == "length_mismatch":
        detail = report["length_mismatch"]
        longer = first_label if detail["longer_side"] == "first" else second_label
        typer.secho(
            f"Record counts differ ({detail['shorter_len']} != {detail['longer_len']}); "
            f"shared prefix is identical.",
            fg=typer.colors.YELLOW,
        )
        echo_heading(f"Extra records in {longer}")
        for position, record in enumerate(detail.get("extra_records") or [], start=detail["shorter_len"] + 1):
            typer.echo(f"- #{position}")
            _echo_record(record)
    else:
        error = report["error"]
        label = first_label if error["side"] == "first" else second_label
        location = _location(error)
        field = f" (field {error['field']})" if error.get("field") else ""
        typer.secho(
            f"Could not decode {label}: {location}{field}: {error['message']}",
            fg=typer.colors.RED,
            err=True,
        )

    mismatches = report.get("mismatches")
    if mismatches:
        typer.echo()
        echo_heading(f"All positional mismatches ({len(mismatches)})")
        for detail in mismatches:
            _echo_mismatch(detail)


def _location(error: Dict[str, Any]) -> str:
    if error.get("line") is not None:
        return f"line {error['line']}"
    if error.get("offset") is not None:
        return f"byte {error['offset']}"
    if error.get("record") is not None:
        return f"record {error['record']}"
    return "input"
