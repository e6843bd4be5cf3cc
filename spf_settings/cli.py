"""
Command-line interface for settings-page-framework.

Inspect settings definitions, sanitize submissions and preview forms against a
JSON option store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from spf_common.config.env import resolve_store_path
from spf_common.errors import SettingsFrameworkError
from spf_common.logging import configure_logging
from spf_settings.framework import SettingsFramework
from spf_settings.keys import option_name
from spf_settings.storage import JsonFileOptionStore, delete_settings

app = typer.Typer(
    help="Build, validate and preview declarative settings pages.",
    no_args_is_help=True,
)
console = Console()

_STORE_OPTION = typer.Option(
    None,
    "--store",
    "-s",
    help="JSON option store; defaults to $SPF_STORE_PATH or ./spf_options.json.",
)
_GROUP_OPTION = typer.Option(
    None,
    "--option-group",
    "-g",
    help="Override the option group declared by the settings file.",
)


def _framework(
    config: Path,
    store: Optional[Path],
    option_group: Optional[str],
) -> SettingsFramework:
    framework = SettingsFramework(JsonFileOptionStore(resolve_store_path(store)))
    try:
        framework.configure_from_file(config, option_group)
    except SettingsFrameworkError as exc:
        console.print(f"[red]Invalid settings:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    framework.register()
    return framework


@app.callback()
def entry(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Configure logging for every command."""
    configure_logging(debug=debug)


@app.command("inspect")
def inspect_settings(
    config: Path = typer.Argument(..., help="YAML/JSON settings definition."),
    option_group: Optional[str] = _GROUP_OPTION,
) -> None:
    """List sections, fields and their storage keys."""
    framework = _framework(config, None, option_group)
    document = framework.document
    if document is None:
        raise typer.Exit(1)

    table = Table(title=f"Settings for {document.option_group}")
    if document.has_tabs:
        table.add_column("Tab", style="magenta")
    table.add_column("Section", style="cyan")
    table.add_column("Field")
    table.add_column("Type", style="green")
    table.add_column("Storage key", style="blue")
    for section, spec in document.iter_fields():
        row = [
            section.section_id,
            spec.id,
            spec.type or "-",
            document.storage_key(section, spec),
        ]
        if document.has_tabs:
            row.insert(0, section.tab_id or "")
        table.add_row(*row)
    console.print(table)

    assets = framework.required_assets()
    if assets:
        console.print(f"Required assets: {', '.join(assets)}")


@app.command("validate")
def validate_submission(
    config: Path = typer.Argument(..., help="YAML/JSON settings definition."),
    submission: Path = typer.Argument(..., help="JSON file holding the raw form submission."),
    store: Optional[Path] = _STORE_OPTION,
    option_group: Optional[str] = _GROUP_OPTION,
    save: bool = typer.Option(False, "--save", help="Persist the cleaned values."),
) -> None:
    """Sanitize a submission and print the values that would be stored."""
    framework = _framework(config, store, option_group)
    try:
        raw = json.loads(submission.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Cannot read submission:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    if not isinstance(raw, dict):
        console.print("[red]Submission must be a JSON object.[/red]")
        raise typer.Exit(1)

    cleaned = framework.save(raw) if save else framework.validate(raw)
    typer.echo(json.dumps(cleaned, indent=2, sort_keys=True))


@app.command("render")
def render_form(
    config: Path = typer.Argument(..., help="YAML/JSON settings definition."),
    store: Optional[Path] = _STORE_OPTION,
    option_group: Optional[str] = _GROUP_OPTION,
) -> None:
    """Print the settings form markup."""
    framework = _framework(config, store, option_group)
    typer.echo(framework.render())


@app.command("show")
def show_settings(
    option_group: str = typer.Argument(..., help="Option group to print."),
    store: Optional[Path] = _STORE_OPTION,
) -> None:
    """Print the stored values of an option group."""
    option_store = JsonFileOptionStore(resolve_store_path(store))
    values = option_store.read(option_name(option_group))
    if values is None:
        console.print(f"[yellow]No stored settings for {option_group}.[/yellow]")
        raise typer.Exit(1)
    typer.echo(json.dumps(values, indent=2, sort_keys=True))


@app.command("delete")
def delete_group(
    option_group: str = typer.Argument(..., help="Option group to delete."),
    store: Optional[Path] = _STORE_OPTION,
) -> None:
    """Delete every stored value of an option group."""
    option_store = JsonFileOptionStore(resolve_store_path(store))
    delete_settings(option_store, option_group)
    console.print(f"[green]Deleted settings for {option_group}.[/green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
