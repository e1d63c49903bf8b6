"""Helpers shared by the CLI commands."""

import sys

import click

from ..config import ConfigManager, RoundTripConfig, get_config_manager
from ..database import Catalog, get_database
from ..models import Item
from ..utils.logging import get_console, get_logger, setup_logging_from_settings

console = get_console()
logger = get_logger(__name__)


def load_config(ctx: click.Context) -> tuple[ConfigManager, RoundTripConfig]:
    """
    Load configuration for a command and apply its logging settings.

    Exits with status 1 when no configuration exists yet.
    """
    config_manager = get_config_manager(ctx.obj.get("config_path"))
    try:
        config = config_manager.load()
    except FileNotFoundError:
        console.print(
            "[yellow]⚠ No configuration found. Run:[/yellow] [cyan]roundtrip init[/cyan]"
        )
        sys.exit(1)
    except ValueError as e:
        console.print(f"[bold red]✗ Invalid configuration:[/bold red] {e}")
        sys.exit(1)

    setup_logging_from_settings(config.logging)
    return config_manager, config


def open_catalog(config: RoundTripConfig) -> Catalog:
    db = get_database(config.database.path)
    return Catalog(db.get_session())


def resolve_item(catalog: Catalog, ref: str) -> Item:
    """
    Turn a CLI reference into a catalog item.

    Numeric references are item ids; anything else is a file path, imported
    on the fly if the catalog doesn't know it yet.
    """
    if ref.isdigit():
        try:
            return catalog.get_item(int(ref))
        except LookupError as e:
            raise click.BadParameter(str(e)) from None

    item = catalog.find_by_path(ref)
    if item is not None:
        return item
    try:
        return catalog.import_file(ref)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e)) from None
