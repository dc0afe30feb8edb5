"""Command groups for the CodeGraph Viz CLI.

Provides logical grouping of commands under:
  cgv config  — Layout settings stored in config.toml
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from . import config_manager
from .config import LayoutSettings

console = Console()

# ── Configuration group ──────────────────────────────────────
config_grp = typer.Typer(
    help="⚙️  Configuration — layout tunables in config.toml.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@config_grp.command("show")
def show_config():
    """Show effective layout settings."""
    stored = config_manager.load_layout_config()
    settings = LayoutSettings.load()

    table = Table(title=f"Layout settings ({config_manager.CONFIG_FILE})")
    table.add_column("Key", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Source", style="dim")
    for key, value in settings.as_dict().items():
        table.add_row(key, f"{value:g}" if isinstance(value, float) else str(value), "config" if key in stored else "default")
    console.print(table)


@config_grp.command("set")
def set_config(
    key: str = typer.Argument(..., help="Setting name, e.g. link_distance."),
    value: str = typer.Argument(..., help="New numeric value."),
):
    """Persist one layout setting."""
    try:
        saved = config_manager.save_layout_config(key, value)
    except KeyError:
        known = ", ".join(LayoutSettings().as_dict())
        raise typer.BadParameter(f"Unknown setting '{key}'. Known settings: {known}")
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a valid number for {key}.")
    if not saved:
        typer.echo(f"Could not write {config_manager.CONFIG_FILE}.")
        raise typer.Exit(code=1)
    typer.echo(f"Set {key} = {value}")


@config_grp.command("reset")
def reset_config():
    """Drop all stored layout settings."""
    if not config_manager.clear_layout_config():
        typer.echo(f"Could not write {config_manager.CONFIG_FILE}.")
        raise typer.Exit(code=1)
    typer.echo("Layout settings reset to defaults.")
