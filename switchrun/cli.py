"""Command-line front end: search the catalog, launch, and manage history."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from switchrun.core.engine import CatalogEngine
from switchrun.core.errors import ActivationError
from switchrun.core.log_setup import setup_logging
from switchrun.shared.command_runner import CommandRunner
from switchrun.shared.config_handler import ConfigHandler

app = typer.Typer(
    name="switchrun",
    help="Query-driven launcher catalog with usage history.",
    no_args_is_help=True,
)
console = Console()


@dataclass
class CliState:
    data_dir: Optional[Path] = None
    config_file: Optional[Path] = None
    verbose: bool = False


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", help="Directory with catalog files and the history store."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Path of config.toml."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    ctx.obj = CliState(data_dir=data_dir, config_file=config_file, verbose=verbose)


def _open_engine(state: CliState, with_activator: bool = True) -> CatalogEngine:
    level = logging.DEBUG if state.verbose else logging.WARNING
    logger = setup_logging(level=level)
    config = ConfigHandler(
        logger, config_file=str(state.config_file) if state.config_file else None
    )
    if not state.verbose:
        level = logging.getLevelName(str(config.get(["logging", "level"], "WARNING")).upper())
        if not isinstance(level, int):
            level = logging.WARNING
    log_file = config.get(["logging", "file"]) or config.path_handler.get_log_path()
    logger = setup_logging(level=level, log_file=log_file)
    if state.data_dir is not None:
        config.config_data.setdefault("catalog", {})["data_dir"] = str(state.data_dir)
    activator = CommandRunner.from_config(config, logger) if with_activator else None
    return CatalogEngine.from_config(config, logger, activator=activator)


@app.command()
def search(ctx: typer.Context, query: str = typer.Argument("", help="Query text.")) -> None:
    """Print the candidates for QUERY, numbered for `run --index`."""
    with _open_engine(ctx.obj, with_activator=False) as engine:
        engine.set_query(query)
        items = engine.candidate_items()
        if not items:
            console.print("[dim]No candidates.[/dim]")
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Candidate")
        table.add_column("Kind")
        table.add_column("Uses", justify="right")
        for index, entry in enumerate(items):
            table.add_row(
                str(index),
                Text(entry.display_string()),
                type(entry.kind).__name__,
                str(entry.use_count),
            )
        console.print(table)


@app.command()
def run(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Query text."),
    index: int = typer.Option(0, "--index", "-i", help="Candidate to launch."),
    elevated: bool = typer.Option(False, "--elevated", help="Launch with elevated privileges."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would run without launching or recording."
    ),
) -> None:
    """Launch candidate INDEX of QUERY and record the use."""
    with _open_engine(ctx.obj) as engine:
        engine.set_query(query)
        if dry_run:
            entry = engine.resolve(index)
            try:
                argv = engine.activator.build_argv(entry, elevated)
            except ActivationError as e:
                console.print(f"[red]{escape(e.message)}[/red]")
                raise typer.Exit(code=1)
            console.print(" ".join(argv), markup=False)
            return
        try:
            entry = engine.activate(index, elevated=elevated)
        except ActivationError as e:
            console.print(f"[red]{escape(e.message)}[/red] (use was still recorded)")
            raise typer.Exit(code=1)
        console.print(f"Launched {entry.display_string()}", markup=False)


@app.command()
def forget(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Query text."),
    index: int = typer.Option(0, "--index", "-i", help="Candidate to forget."),
) -> None:
    """Remove candidate INDEX of QUERY from the usage history."""
    with _open_engine(ctx.obj, with_activator=False) as engine:
        engine.set_query(query)
        entry = engine.remove(index)
        console.print(f"Forgot {entry.name}", markup=False)


@app.command()
def history(ctx: typer.Context) -> None:
    """List recorded uses, most recent first."""
    with _open_engine(ctx.obj, with_activator=False) as engine:
        if engine.store is None:
            console.print("[red]History store is unavailable.[/red]")
            raise typer.Exit(code=1)
        records = list(reversed(engine.store.iterate()))
        if not records:
            console.print("[dim]No history.[/dim]")
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("Name")
        table.add_column("Uses", justify="right")
        table.add_column("Last used")
        for record in records:
            last_used = datetime.fromtimestamp(record.last_use_time).strftime("%Y-%m-%d %H:%M:%S")
            table.add_row(Text(record.name), str(record.use_count), last_used)
        console.print(table)
