"""HTTP VCR CLI interface for inspecting, matching and replaying recordsets."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from http_vcr import __version__
from http_vcr.config import RecorderConfig, load_config
from http_vcr.core.format import Exchange, RecordedRequest, RecordsetFile
from http_vcr.core.matcher import RecordsetMatcher
from http_vcr.engine import ReplayEngine
from http_vcr.middleware import serve as serve_replay

console = Console()

SPEED_CHOICES = ["fastest", "lower", "lowest", "fast", "original"]


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level for engine diagnostics",
)
def cli(log_level: str) -> None:
    """HTTP VCR - Record and replay HTTP traffic with its original timing."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.option(
    "--format",
    type=click.Choice(["text", "json", "table"]),
    default="text",
    help="Output format",
)
def inspect(file: str, format: str) -> None:
    """Inspect a recordset file.

    Example:
        http-vcr inspect checkout.json --format table
    """
    try:
        recordset = RecordsetFile.load(file)
    except (IOError, ValueError) as e:
        raise click.ClickException(f"Failed to load recordset: {e}")

    if format == "json":
        _output_inspect_json(recordset)
    elif format == "table":
        _output_inspect_table(recordset)
    else:
        _output_inspect_text(recordset)


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--method", "-m", required=True, help="HTTP method (case-sensitive)")
@click.option("--url", "-u", required=True, help="Request target, query string included")
@click.option("--body", "-b", default=None, help="Raw request body (omit for no body)")
def match(file: str, method: str, url: str, body: str | None) -> None:
    """Find the recorded exchange a request would be answered with.

    Example:
        http-vcr match checkout.json -m POST -u /cart -b '{"sku": 1}'
    """
    try:
        recordset = RecordsetFile.load(file)
    except (IOError, ValueError) as e:
        raise click.ClickException(f"Failed to load recordset: {e}")

    matcher = RecordsetMatcher()
    matcher.set_requests(recordset.name, recordset.exchanges)
    request = RecordedRequest(
        method=method,
        url=url,
        raw_body=body.encode("utf-8") if body is not None else None,
    )
    matches = matcher.find_all_matches(recordset.name, request)

    if not matches:
        console.print(f"[red]No match[/red] for {method} {url} (replay answers 404)")
        sys.exit(1)

    exchange = matches[0]
    console.print(f"[bold green]Match[/bold green] {method} {url}")
    console.print(
        f"  Status: {exchange.response.status_code} {exchange.response.status_message}"
    )
    console.print(f"  Original latency: {exchange.duration_ms:.0f} ms")
    console.print(f"  Body: {len(exchange.response.body)} bytes")
    if len(matches) > 1:
        console.print(f"  [dim]{len(matches) - 1} later duplicate(s) shadowed[/dim]")


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--host", default="127.0.0.1", help="Host to bind the replay server to")
@click.option("--port", type=int, default=8080, help="Port to bind the replay server to")
@click.option(
    "--speed",
    type=click.Choice(SPEED_CHOICES),
    default=None,
    help="Replay speed (overrides config)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to recorder config JSON",
)
def serve(
    file: str, host: str, port: int, speed: str | None, config_path: str | None
) -> None:
    """Replay a recordset file over HTTP.

    Unmatched requests are answered with 404.

    Example:
        http-vcr serve checkout.json --port 8080 --speed original
    """
    try:
        config = load_config(config_path) if config_path else RecorderConfig()
        config = RecorderConfig.from_env(config)
        if speed:
            config = config.model_copy(update={"speed": speed})

        recordset = RecordsetFile.load(file)
        engine = ReplayEngine(config=config)
        engine.set_requests(recordset.name, recordset.exchanges)
        engine.replay(recordset.name)

        console.print(f"[bold green]Loaded recordset[/bold green]: {recordset.name}")
        console.print(f"  Exchanges: {recordset.exchange_count}")
        console.print(f"  Speed: {config.speed}")
        console.print(f"  URL: http://{host}:{port}")
        console.print("[yellow]Waiting for requests...[/yellow]")

        asyncio.run(serve_replay(engine, host, port))

    except KeyboardInterrupt:
        console.print("\n[yellow]Replay interrupted by user[/yellow]")
        sys.exit(0)
    except click.ClickException:
        raise
    except Exception as e:
        raise click.ClickException(f"Replay failed: {e}")


def _summarize(exchanges: list[Exchange]) -> dict[str, int]:
    routes: dict[str, int] = {}
    for exchange in exchanges:
        key = f"{exchange.request.method} {exchange.request.url_parse.path}"
        routes[key] = routes.get(key, 0) + 1
    return routes


def _output_inspect_text(recordset: RecordsetFile) -> None:
    """Output recordset inspection in text format."""
    console.print("[bold cyan]Recordset[/bold cyan]")
    console.print(f"  Name: {recordset.name}")
    console.print(f"  Version: {recordset.format_version}")
    console.print(f"  Recorded: {recordset.recorded_at}")

    console.print()
    console.print("[bold cyan]Statistics[/bold cyan]")
    console.print(f"  Total exchanges: {recordset.exchange_count}")
    routes = _summarize(recordset.exchanges)
    console.print(f"  Routes: {len(routes)}")
    for route, count in sorted(routes.items()):
        console.print(f"    • {route}: {count}")

    if recordset.exchanges:
        console.print()
        console.print("[bold cyan]Timeline[/bold cyan]")
        for i, exchange in enumerate(recordset.exchanges[:10], 1):
            console.print(
                f"  {i}. {exchange.request.method} {exchange.request.url} "
                f"-> {exchange.response.status_code} ({exchange.duration_ms:.0f} ms)"
            )
        if recordset.exchange_count > 10:
            console.print(f"  ... and {recordset.exchange_count - 10} more")


def _output_inspect_json(recordset: RecordsetFile) -> None:
    """Output recordset inspection in JSON format."""
    output: dict[str, Any] = {
        "name": recordset.name,
        "format_version": recordset.format_version,
        "recorded_at": str(recordset.recorded_at),
        "statistics": {
            "total_exchanges": recordset.exchange_count,
            "routes": _summarize(recordset.exchanges),
        },
    }
    console.print(JSON(json.dumps(output, indent=2)))


def _output_inspect_table(recordset: RecordsetFile) -> None:
    """Output recordset inspection in table format."""
    table = Table(title=f"Recordset {recordset.name}")
    table.add_column("#", justify="right")
    table.add_column("Method", style="cyan")
    table.add_column("URL")
    table.add_column("Status", style="magenta", justify="right")
    table.add_column("Latency (ms)", justify="right")

    for i, exchange in enumerate(recordset.exchanges, 1):
        table.add_row(
            str(i),
            exchange.request.method,
            exchange.request.url,
            str(exchange.response.status_code),
            f"{exchange.duration_ms:.0f}",
        )

    console.print(table)
    console.print(f"[bold cyan]Total Exchanges: {recordset.exchange_count}[/bold cyan]")


def main() -> None:
    """Entry point for the HTTP VCR CLI."""
    cli()


if __name__ == "__main__":
    main()
