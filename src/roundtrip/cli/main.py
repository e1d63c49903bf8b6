"""Main CLI interface for roundtrip using Click."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from .. import __version__
from ..config import OPTION_KEYS, get_config_manager
from ..database import get_database
from ..utils.logging import setup_logging_from_settings
from .catalog import import_command, list_command, show_command, tag_command, watch_command
from .context import console, load_config, logger
from .edit import edit_command

DEFAULT_CONFIG_PATH = Path("config/roundtrip.yaml")


@click.group()
@click.version_option(version=__version__, prog_name="roundtrip")
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.pass_context
def cli(ctx, config: Optional[Path]):
    """
    roundtrip - edit catalog photos in an external editor and bring the results back.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Catalog database path (overrides config)",
)
@click.pass_context
def init(ctx, catalog_path: Optional[Path]):
    """
    Create the configuration file and an empty catalog.
    """
    console.print("\n[bold cyan]roundtrip initialization[/bold cyan]\n")

    try:
        config_manager = get_config_manager(ctx.obj.get("config_path"))
        config = config_manager.load(create_if_missing=True)

        if catalog_path is not None:
            config.database.path = catalog_path

        if config_manager.config_path is None or not config_manager.config_path.exists() or catalog_path:
            saved = config_manager.save(config, config_manager.config_path or DEFAULT_CONFIG_PATH)
            console.print(f"✓ Wrote configuration: [green]{saved}[/green]")
        else:
            console.print(f"✓ Loaded configuration from: [green]{config_manager.config_path}[/green]")

        setup_logging_from_settings(config.logging)

        get_database(config.database.path)
        console.print(f"✓ Catalog ready: [green]{config.database.path}[/green]")

        console.print("\n[bold green]✓ Initialization complete![/bold green]")
        console.print("\n[cyan]Next steps:[/cyan]")
        console.print("  1. Import photos: [yellow]roundtrip import ~/Pictures[/yellow]")
        console.print("  2. Pick an editor: [yellow]roundtrip config set tool_path gimp[/yellow]")
        console.print("  3. Edit: [yellow]roundtrip edit 1[/yellow]")

    except Exception as e:
        console.print(f"\n[bold red]✗ Initialization failed:[/bold red] {e}")
        logger.exception("Initialization error")
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx):
    """Show configuration summary and catalog statistics."""
    config_manager, config = load_config(ctx)

    try:
        db = get_database(config.database.path)
        session = db.get_session()

        from ..database import ItemOrigin, ItemRecord, TagRecord

        total_items = session.query(ItemRecord).count()
        edited_items = (
            session.query(ItemRecord).filter(ItemRecord.origin == ItemOrigin.ROUNDTRIP.value).count()
        )
        total_tags = session.query(TagRecord).count()
        session.close()

        table = Table(title="Catalog", show_header=True, header_style="bold cyan")
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")
        table.add_row("Items", str(total_items))
        table.add_row("  └─ From round-trips", str(edited_items))
        table.add_row("Tags", str(total_tags))
        console.print(table)

        console.print(f"\n[cyan]Catalog:[/cyan] {config.database.path}")
        console.print(f"[cyan]Config:[/cyan] {config_manager.config_path}")
        console.print(f"[cyan]Editor:[/cyan] {config.editor.tool_path}")
        console.print(f"[cyan]Run mode:[/cyan] {config.editor.run_mode.value}")

    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        logger.exception("Status command error")
        sys.exit(1)


@cli.group(name="config")
def config_group():
    """Show or change configuration options."""
    pass


@config_group.command(name="show")
@click.pass_context
def config_show(ctx):
    """Display current configuration."""
    config_manager, config = load_config(ctx)

    console.print("\n[bold cyan]roundtrip configuration[/bold cyan]\n")

    console.print("[bold]Editor:[/bold]")
    console.print(f"  Tool: {config.editor.tool_path}")
    console.print(
        f"  Run detached: {'[green]yes[/green]' if config.editor.run_detached else '[yellow]no[/yellow]'}"
    )
    console.print(f"  Export format: {config.editor.export_format}")
    console.print(f"  Bit depth: {config.editor.bit_depth}")

    console.print("\n[bold]Import:[/bold]")
    console.print(f"  Ignore patterns: {config.imports.ignore_patterns or '(none)'}", markup=False)
    console.print(f"  Matcher: {config.imports.matcher}")
    for folder in config.imports.inbox_folders:
        console.print(f"  Inbox: {folder}")

    console.print("\n[bold]Catalog:[/bold]")
    console.print(f"  Path: {config.database.path}")
    console.print(f"  Export dir: {config.database.export_dir or '(system temp)'}")

    console.print(f"\n[dim]Config file: {config_manager.config_path}[/dim]")


@config_group.command(name="set")
@click.argument("key", type=click.Choice(sorted(OPTION_KEYS)))
@click.argument("value")
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Set option KEY to VALUE and save the configuration."""
    config_manager, _ = load_config(ctx)

    try:
        config = config_manager.set_option(key, value)
        saved = config_manager.save(config)
    except ValueError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    section, field_name = OPTION_KEYS[key]
    new_value = getattr(getattr(config, section), field_name)
    console.print(f"✓ {key} = {new_value}", markup=False)
    console.print(f"[dim]Saved to {saved}[/dim]")


cli.add_command(edit_command)
cli.add_command(import_command)
cli.add_command(list_command)
cli.add_command(show_command)
cli.add_command(tag_command)
cli.add_command(watch_command)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
