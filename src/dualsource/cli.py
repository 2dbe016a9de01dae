"""CLI interface for dualsource."""

from enum import Enum
from pathlib import Path
from typing import NoReturn
import json
import logging
from uuid import uuid4

import typer

from .audio_contract import InvalidInputError
from .interfaces.cli_handlers import (
    analysis_as_dict,
    analyze_path,
    attribute_paths,
    normalize_paths,
    resolve_config,
)

app = typer.Typer(help="dualsource command line interface")


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _fail(error: InvalidInputError) -> NoReturn:
    typer.echo(f"Invalid input ({error.code}): {error.message}", err=True)
    raise typer.Exit(code=2)


@app.callback()
def main(
    log_level: LogLevel = typer.Option(
        LogLevel.WARNING,
        "--log-level",
        case_sensitive=False,
        help="Python logging level.",
    ),
) -> None:
    """Level normalization and source attribution for mic/system track pairs."""

    logging.basicConfig(level=log_level.value, format="%(levelname)s %(name)s: %(message)s")


@app.command("analyze")
def analyze_command(
    path: Path = typer.Argument(..., help="Mono 16-bit WAV file"),
    config: Path | None = typer.Option(None, "--config", "-c", help="JSON/YAML attribution config."),
) -> None:
    """Print RMS/peak levels and clipping/silence flags for one track."""

    try:
        analysis = analyze_path(path, resolve_config(config))
    except InvalidInputError as error:
        _fail(error)
    typer.echo(json.dumps(analysis_as_dict(analysis), indent=2))


@app.command("normalize")
def normalize_command(
    mic: Path = typer.Option(..., "--mic", "-m", help="Microphone track (mono 16-bit WAV)"),
    sys: Path = typer.Option(..., "--sys", "-s", help="System-output track (mono 16-bit WAV)"),
    output_dir: Path = typer.Option(..., "--out-dir", "-o", help="Directory for normalized tracks"),
    target_rms_db: float | None = typer.Option(None, "--target-rms-db", help="Target RMS in dBFS."),
    disabled: bool = typer.Option(False, "--disabled", help="Pass both tracks through untouched."),
    config: Path | None = typer.Option(None, "--config", "-c", help="JSON/YAML attribution config."),
) -> None:
    """Balance mic and system levels ahead of merging."""

    correlation_id = str(uuid4())
    try:
        mic_out, sys_out, result = normalize_paths(
            mic,
            sys,
            output_dir,
            correlation_id=correlation_id,
            config=resolve_config(config),
            target_rms_db=target_rms_db,
            enabled=False if disabled else None,
        )
    except InvalidInputError as error:
        _fail(error)

    typer.echo(f"Processed: {result.was_processed}")
    typer.echo(f"Mic gain: {result.mic_gain_db:+.2f} dB -> {mic_out}")
    typer.echo(f"System gain: {result.sys_gain_db:+.2f} dB -> {sys_out}")
    if result.warning:
        typer.echo(f"Warning: {result.warning}")
    typer.echo(f"Correlation ID: {correlation_id}")


@app.command("attribute")
def attribute_command(
    mic: Path = typer.Option(..., "--mic", "-m", help="Microphone track (mono 16-bit WAV)"),
    sys: Path = typer.Option(..., "--sys", "-s", help="System-output track (mono 16-bit WAV)"),
    transcript: Path | None = typer.Option(None, "--transcript", "-t", help="Plain-text transcript to label."),
    report_json: Path | None = typer.Option(None, "--report-json", help="Optional path for a JSON report."),
    config: Path | None = typer.Option(None, "--config", "-c", help="JSON/YAML attribution config."),
) -> None:
    """Print which source was active over time."""

    correlation_id = str(uuid4())
    try:
        report = attribute_paths(
            mic,
            sys,
            correlation_id=correlation_id,
            config=resolve_config(config),
            transcript=transcript,
            report_json=report_json,
        )
    except InvalidInputError as error:
        _fail(error)

    for segment in report.timeline:
        typer.echo(str(segment))
    typer.echo(f"BOTH ratio: {report.summary['both_ratio']:.2%}")
    if report.labeled_transcript is not None:
        typer.echo("")
        typer.echo(report.labeled_transcript)
    typer.echo(f"Correlation ID: {correlation_id}")


if __name__ == "__main__":
    app()
