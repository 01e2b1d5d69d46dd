import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import click
import httpx
import typer
from rich.console import Console
from rich.table import Table

from gopixel.callbacks import SummaryCallbacks
from gopixel.config import PixelConfig, TrackingContext, load_config
from gopixel.constants import EXIT_CODE_FAILURE, EXIT_CODE_OK
from gopixel.errors import GoPixelError
from gopixel.events import Event, Payload
from gopixel.tracker import Tracker

LOG = logging.getLogger(__name__)

console = Console()

CLI_MAIN_INTRODUCTION = (
    "GoPixel telemetry pixel.\n\n"
    "Example: gopixel emit page_load -f title=Home -f location.pathname=/"
)
CLI_DEBUG_HELP = "Enable debug logging."
CLI_EMIT_HELP = (
    "Send one event to the collection endpoint, with the same buffering, "
    "scheduling and unload flush as an embedded tracker."
)

app = typer.Typer(name="gopixel", rich_markup_mode="rich", help=CLI_MAIN_INTRODUCTION)


def configure_logger(debug: bool) -> None:
    level = logging.CRITICAL

    if debug:
        level = logging.DEBUG

    logging.basicConfig(format="%(asctime)s %(name)s => %(message)s", level=level)


def output_exception(exception: Exception) -> None:
    """
    Print an error and exit with its exit code.
    """
    click.secho(str(exception), fg="red", file=sys.stderr)

    exit_code = EXIT_CODE_FAILURE
    if hasattr(exception, "get_exit_code"):
        exit_code = exception.get_exit_code()

    sys.exit(exit_code)


def parse_value(raw: str) -> Any:
    """
    JSON literals (numbers, booleans, null) are decoded, anything else is a string.
    """
    try:
        value = json.loads(raw)
    except ValueError:
        return raw

    if isinstance(value, (dict, list)):
        return raw
    return value


def parse_fields(fields: List[str]) -> Payload:
    """
    Build a payload from key=value pairs. Dotted keys create nested payloads:
    "screen.width=1920" -> {"screen": {"width": 1920}}.
    """
    payload = Payload()

    for field in fields:
        key, sep, raw = field.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{field}'")

        *parents, leaf = key.split(".")
        target = payload
        for parent in parents:
            nested = target.get(parent)
            if not isinstance(nested, Payload):
                nested = Payload()
                target.set(parent, nested)
            target = nested
        target.set(leaf, parse_value(raw))

    return payload


def build_http_client(config: PixelConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.request_timeout)


async def send_event(
    config: PixelConfig,
    context: TrackingContext,
    event: Event,
    callbacks: SummaryCallbacks,
) -> bool:
    async with build_http_client(config) as http_client:
        async with Tracker(
            config, context=context, http_client=http_client, callbacks=callbacks
        ) as tracker:
            tracker.start()
            tracker.push(event)
            return await tracker.unload()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help=CLI_DEBUG_HELP),
) -> None:
    configure_logger(debug)


@app.command("emit", help=CLI_EMIT_HELP)
def emit(
    name: str = typer.Argument(..., help="Event name, e.g. page_load"),
    fields: Optional[List[str]] = typer.Option(
        None, "--field", "-f", help="Payload field as key=value, dotted keys nest"
    ),
    licence: Optional[str] = typer.Option(
        None, "--licence", help="Client licence key (or GOPIXEL_LICENCE)"
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Collection endpoint (or GOPIXEL_API_ENDPOINT)"
    ),
    visitor: Optional[str] = typer.Option(
        None, "--visitor", help="Visitor id, a new one is generated by default"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a config.ini with a [pixel] section"
    ),
) -> None:
    try:
        config = load_config(config_path, licence=licence, endpoint=endpoint)
    except GoPixelError as e:
        output_exception(e)
        return

    payload = parse_fields(fields or [])

    context_kwargs = {"client": config.licence}
    if visitor:
        context_kwargs["visitor"] = visitor
    context = TrackingContext(**context_kwargs)

    callbacks = SummaryCallbacks()
    event = Event(name, payload)
    LOG.debug("Emitting %r with payload %s", event, dict(event.payload))

    delivered = asyncio.run(send_event(config, context, event, callbacks))

    table = Table(title=f"Event '{name}'", show_header=False)
    table.add_row("Endpoint", config.endpoint)
    table.add_row("Visitor", context.visitor)
    table.add_row("Events sent", str(callbacks.summary.events_sent))
    table.add_row("Failed batches", str(callbacks.summary.batches_failed))
    console.print(table)

    if not delivered:
        reason = callbacks.last_error or "the endpoint did not accept the batch in time"
        console.print(f"[red]Event not delivered:[/red] {reason}")
        raise typer.Exit(code=EXIT_CODE_FAILURE)

    console.print("[green]Event delivered.[/green]")
    raise typer.Exit(code=EXIT_CODE_OK)


def cli(prog_name: Optional[str] = None) -> None:
    app(prog_name=prog_name)
