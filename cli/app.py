from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from app.schemas import build_report
from cli.client import ApiClient
from cli.config import EXIT_DECODE_FAILURE, EXIT_ENCODE_FAILURE, CLIConfig, load_config
from cli.render import exit_code_for, render_report
from logging_config import configure_logging
from models.errors import EncodeError, ParseError, UnsupportedFormat
from models.outcomes import DecodeFailure
from services.converter import build_default_converter
from services.pipeline import StreamSource, build_default_service


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Compare two transaction logs, possibly written in different formats.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _file_argument(help_text: str) -> Any:
    return typer.Option(..., exists=True, dir_okay=False, readable=True, help=help_text)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Comparison API base URL for 'remote' (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds for 'remote'.",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level for diagnostics written to stderr.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper())
    config = load_config(base_url=base_url, http_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


def _finish(report: Dict[str, Any], as_json: bool, first_label: str, second_label: str) -> None:
    if as_json:
        typer.echo(json.dumps(report, indent=2))
    else:
        render_report(report, first_label=first_label, second_label=second_label)
    code = exit_code_for(report)
    if code:
        raise typer.Exit(code=code)


@app.command("compare")
def compare_command(
    file1: Path = _file_argument("First transaction log."),
    format1: str = typer.Option(..., "--format1", help="Format of the first log (see 'formats')."),
    file2: Path = _file_argument("Second transaction log."),
    format2: str = typer.Option(..., "--format2", help="Format of the second log (see 'formats')."),
    all_mismatches: bool = typer.Option(
        False,
        "--all",
        help="List every positional mismatch, not just the first one.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Decode both files locally and compare them record by record."""
    service = build_default_service()
    first = StreamSource(data=file1.read_bytes(), format_name=format1, label=str(file1))
    second = StreamSource(data=file2.read_bytes(), format_name=format2, label=str(file2))

    if all_mismatches:
        collected = service.collect_mismatches(first, second)
        if isinstance(collected, DecodeFailure):
            report = build_report(collected)
        else:
            outcome, mismatches = collected
            report = build_report(outcome, mismatches)
    else:
        report = build_report(service.compare_streams(first, second))

    payload = report.model_dump(mode="json", exclude_none=True)
    _finish(payload, as_json, str(file1), str(file2))


@app.command("formats")
def formats_command(
    ctx: typer.Context,
    remote: bool = typer.Option(False, "--remote", help="Ask the comparison API instead of this install."),
) -> None:
    """List the format identifiers accepted by --format1/--format2."""
    if remote:
        names = _get_state(ctx).client.list_formats()
    else:
        names = build_default_service().registry.formats()
    for name in names:
        typer.echo(name)


@app.command("convert")
def convert_command(
    input_path: Path = typer.Option(
        ..., "--input", exists=True, dir_okay=False, readable=True, help="Transaction log to read."
    ),
    input_format: str = typer.Option(..., "--input-format", help="Format of the input log."),
    output_format: str = typer.Option(..., "--output-format", help="Format to write."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Write to this file instead of stdout."
    ),
) -> None:
    """Re-encode a transaction log in another format."""
    source = StreamSource(data=input_path.read_bytes(), format_name=input_format, label=str(input_path))
    try:
        payload = build_default_converter().convert(source, output_format)
    except (ParseError, UnsupportedFormat) as exc:
        typer.secho(f"Could not convert {input_path}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_DECODE_FAILURE) from exc
    except EncodeError as exc:
        typer.secho(f"Could not write {output_format}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_ENCODE_FAILURE) from exc

    if output is None:
        typer.echo(payload, nl=False)
    else:
        output.write_bytes(payload)


@app.command("remote")
def remote_command(
    ctx: typer.Context,
    file1: Path = _file_argument("First transaction log."),
    format1: str = typer.Option(..., "--format1", help="Format of the first log."),
    file2: Path = _file_argument("Second transaction log."),
    format2: str = typer.Option(..., "--format2", help="Format of the second log."),
    all_mismatches: bool = typer.Option(False, "--all", help="List every positional mismatch."),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Upload both files to a running comparison API and show its verdict."""
    state = _get_state(ctx)
    typer.echo(f"Comparing via {state.config.base_url} ...", err=True)
    payload = state.client.compare(file1, format1, file2, format2, all_mismatches=all_mismatches)
    _finish(payload, as_json, str(file1), str(file2))
