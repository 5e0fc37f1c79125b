from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_record, render_records


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the indoor farm monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("reconcile")
def reconcile_command(ctx: typer.Context) -> None:
    """Trigger a reconciliation pass and show the stored records."""
    state = _get_state(ctx)
    typer.echo(f"Reconciling via {state.config.base_url} ...")
    records = state.client.reconcile()
    typer.secho(f"Stored {len(records)} combined records.", fg=typer.colors.GREEN)
    typer.echo()
    render_records(records)


@app.command("records")
def records_command(ctx: typer.Context) -> None:
    """List every stored record, newest first."""
    state = _get_state(ctx)
    render_records(state.client.list_records())


@app.command("tray")
def tray_command(
    ctx: typer.Context,
    tray_id: str = typer.Argument(..., help="Tray identifier, e.g. TRAY001 or 1."),
) -> None:
    """Show the latest stored record for a tray."""
    state = _get_state(ctx)
    record = state.client.get_tray(tray_id)
    if record is None:
        typer.secho(f"No data found for tray {tray_id}.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    render_record(record)
