from __future__ import annotations

import json
from contextlib import ExitStack
from pathlib import Path
from typing import Any

import typer

from .config import OUTPUT_FORMATS, StreamConfig, load_stream_config
from .events import AuditEvent, ErrorEvent, format_timestamp
from .logging_setup import configure_logging
from .stream import AuditStream, ErrorStream, EventStream

app = typer.Typer(add_completion=False, help="logstream: decode error and audit event logs")


def _format_text(event: Any) -> str:
    if isinstance(event, ErrorEvent):
        return event.message
    if isinstance(event, AuditEvent):
        ts = format_timestamp(event.time) if event.time is not None else "-"
        ms = event.response.time.total_seconds() * 1000
        return (
            f"{ts} {event.response.code} {event.request.identity or '-'} "
            f"{event.request.path or '-'} {ms:.3f}ms"
        )
    return str(event)


def _render(stream: EventStream[Any], fmt: str) -> str:
    if fmt == "raw":
        return stream.raw.decode("utf-8", errors="replace")
    if fmt == "json":
        return json.dumps(stream.event.to_dict(), ensure_ascii=True)
    return _format_text(stream.event)


def _resolve_config(config: Path | None, fmt: str | None, max_line_bytes: int | None) -> StreamConfig:
    cfg = load_stream_config(config)
    if fmt is not None:
        cfg.output_format = fmt
    if max_line_bytes is not None:
        cfg.max_line_bytes = max_line_bytes

    if cfg.output_format not in OUTPUT_FORMATS:
        typer.secho(
            f"Unknown format {cfg.output_format!r} (expected one of: {', '.join(OUTPUT_FORMATS)})",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=2)
    return cfg


def _follow(kind: type[EventStream[Any]], path: str, cfg: StreamConfig) -> None:
    with ExitStack() as stack:
        if path == "-":
            source = typer.get_binary_stream("stdin")
        else:
            try:
                source = stack.enter_context(Path(path).open("rb"))
            except OSError as e:
                typer.secho(f"Cannot open {path}: {e}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=2) from e

        stream = kind(source, **cfg.stream_kwargs())
        while stream.next():
            typer.echo(_render(stream, cfg.output_format))

        if stream.err is not None:
            typer.secho(f"Stream stopped: {stream.err}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)


PathArg = typer.Argument("-", help="Log file to decode ('-' reads stdin)")
FormatOpt = typer.Option(None, "--format", "-f", help="Output format: text|json|raw")
MaxLineOpt = typer.Option(None, "--max-line-bytes", min=1, help="Longest accepted line in bytes")
ConfigOpt = typer.Option(None, "--config", help="YAML config (defaults to the nearest logstream.yaml)")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Log stream diagnostics to stderr")


@app.command()
def errors(
    path: str = PathArg,
    fmt: str | None = FormatOpt,
    max_line_bytes: int | None = MaxLineOpt,
    config: Path | None = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Decode an error log."""
    if verbose:
        configure_logging("DEBUG")
    _follow(ErrorStream, path, _resolve_config(config, fmt, max_line_bytes))


@app.command()
def audit(
    path: str = PathArg,
    fmt: str | None = FormatOpt,
    max_line_bytes: int | None = MaxLineOpt,
    config: Path | None = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Decode an audit log."""
    if verbose:
        configure_logging("DEBUG")
    _follow(AuditStream, path, _resolve_config(config, fmt, max_line_bytes))


def main() -> None:
    # Entry point for console script.
    app()


if __name__ == "__main__":
    main()
