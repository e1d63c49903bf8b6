"""CLI command that sends catalog items through the external editor."""

import sys
from typing import Optional

import click
from rich.table import Table

from ..core import RoundTripCoordinator, RoundTripResult
from ..database import ItemOrigin
from ..errors import CatalogFailure, LaunchError, RelocationFailure, ToolNotFound
from ..exporter import FileExporter
from ..models import RunMode
from .context import console, load_config, logger, open_catalog, resolve_item


def print_progress(index: int, total: int, label: str):
    console.print(f"[cyan]{index}/{total}[/cyan] {label}")


def print_result(result: RoundTripResult):
    if result.export_failures:
        console.print(f"\n[red]{len(result.export_failures)} item(s) could not be exported:[/red]")
        for failure in result.export_failures:
            console.print(f"  • {failure}", markup=False)

    if result.mode == RunMode.DETACHED:
        if result.launch is not None:
            console.print(
                "\n[yellow]Editor running detached.[/yellow] "
                "Edited files will not be brought back into the catalog."
            )
        return

    if not result.outcomes:
        return

    table = Table(title="Round-trip", show_header=True, header_style="bold cyan")
    table.add_column("Original", style="cyan")
    table.add_column("Result")
    table.add_column("Tags copied", justify="right")

    for outcome in result.outcomes:
        if outcome.success:
            text = f"[green]{outcome.destination.name}[/green] (item {outcome.new_item.id})"
            if outcome.warning is not None:
                text += " [yellow]name reused[/yellow]"
        else:
            text = f"[red]{outcome.error.reason}[/red]"
        table.add_row(outcome.item.filename, text, str(len(outcome.copied_tags)))

    console.print()
    console.print(table)

    not_moved = [o for o in result.failed if isinstance(o.error, RelocationFailure)]
    if not_moved:
        console.print("\n[yellow]Edited files that were not moved are still in:[/yellow]")
        for outcome in not_moved:
            console.print(f"  • {outcome.exported.path}", markup=False)

    not_cataloged = [o for o in result.failed if isinstance(o.error, CatalogFailure)]
    if not_cataloged:
        console.print("\n[yellow]Edited files moved but missing from the catalog:[/yellow]")
        for outcome in not_cataloged:
            console.print(f"  • {outcome.destination}", markup=False)


@click.command(name="edit")
@click.argument("items", nargs=-1, required=True)
@click.option(
    "--detached/--attached",
    default=None,
    help="Override the configured run mode",
)
@click.option("--tool", help="Editor to use instead of the configured one")
@click.option(
    "--format",
    "export_format",
    type=click.Choice(["original", "jpeg", "png", "tiff"]),
    help="Export format for the copies handed to the editor",
)
@click.option("--bit-depth", type=click.Choice(["8", "16"]), help="Bits per channel")
@click.pass_context
def edit_command(
    ctx,
    items: tuple[str, ...],
    detached: Optional[bool],
    tool: Optional[str],
    export_format: Optional[str],
    bit_depth: Optional[str],
):
    """
    Edit ITEMS (catalog ids or file paths) in the external editor.

    Attached runs wait for the editor to exit, then move each edited file
    next to its original, import it, group it with the original and copy
    the original's tags. Detached runs just start the editor.

    \b
    Examples:
        roundtrip edit 12 13
        roundtrip edit ~/Pictures/IMG_0001.jpg --format jpeg
        roundtrip edit 12 --detached
    """
    _, config = load_config(ctx)

    settings = config.editor.model_copy()
    if detached is not None:
        settings.run_detached = detached
    if tool:
        settings.tool_path = tool
    if export_format:
        settings.export_format = export_format
    if bit_depth:
        settings.bit_depth = int(bit_depth)

    catalog = open_catalog(config)
    try:
        targets = [resolve_item(catalog, ref) for ref in items]

        exporter = FileExporter(
            export_dir=config.database.export_dir,
            jpeg_quality=settings.jpeg_quality,
        )
        coordinator = RoundTripCoordinator(
            settings=settings,
            exporter=exporter,
            collection=catalog,
            progress=print_progress,
        )

        console.print(f"[cyan]Launching {settings.tool_path}...[/cyan]")
        result = coordinator.run(targets)
        for new_item in result.new_items:
            catalog.set_origin(new_item, ItemOrigin.ROUNDTRIP)
        print_result(result)

    except (ToolNotFound, LaunchError) as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        logger.error(f"Round-trip aborted: {e}")
        sys.exit(1)
    finally:
        catalog.session.close()
