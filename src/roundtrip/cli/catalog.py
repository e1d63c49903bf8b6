"""CLI commands for filling and inspecting the catalog."""

import sys
import time
from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from ..core import CatalogImporter
from ..filters import ImportFilter, ImportIgnoreListener
from ..watcher import ImportWatcher
from .context import console, load_config, logger, open_catalog, resolve_item


def collect_candidates(paths: tuple[Path, ...], extensions: set[str], recursive: bool) -> list[Path]:
    """Expand files and folders into importable files, sorted per folder."""
    candidates: list[Path] = []
    for path in paths:
        if path.is_file():
            candidates.append(path)
            continue
        walker = path.rglob("*") if recursive else path.iterdir()
        found = [
            p
            for p in walker
            if p.is_file() and not p.name.startswith(".") and p.suffix.lower() in extensions
        ]
        candidates.extend(sorted(found))
    return candidates


@click.command(name="import")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--recursive/--no-recursive", "-r/-R", default=False, help="Descend into subfolders")
@click.pass_context
def import_command(ctx, paths: tuple[Path, ...], recursive: bool):
    """
    Import image files (or folders of them) into the catalog.

    Files matching the configured ignore patterns are skipped.
    """
    _, config = load_config(ctx)

    catalog = open_catalog(config)
    try:
        candidates = collect_candidates(paths, set(config.imports.supported_extensions), recursive)
        listener = ImportIgnoreListener(ImportFilter.from_settings(config.imports))
        report = CatalogImporter(catalog, [listener]).import_paths(candidates)
    finally:
        catalog.session.close()

    console.print(f"[green]✓ Imported {len(report.imported)} image(s)[/green]")
    if report.ignored:
        console.print(f"[yellow]Ignored {report.ignored_count} image(s) matching ignore patterns[/yellow]")
    if report.failed:
        console.print(f"[red]{len(report.failed)} file(s) failed:[/red]")
        for candidate, error in report.failed.items():
            console.print(f"  • {candidate}: {error}", markup=False)
        sys.exit(1)


@click.command(name="list")
@click.pass_context
def list_command(ctx):
    """List catalog items."""
    _, config = load_config(ctx)

    catalog = open_catalog(config)
    try:
        items = catalog.list_items()
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right")
        table.add_column("Group", justify="right")
        table.add_column("File", style="cyan")
        table.add_column("Folder", style="dim")
        for item in items:
            table.add_row(str(item.id), str(item.leader_id), item.filename, str(item.path.parent))
        console.print(table)
    finally:
        catalog.session.close()


@click.command(name="show")
@click.argument("item")
@click.pass_context
def show_command(ctx, item: str):
    """Show an item's group and tags."""
    _, config = load_config(ctx)

    catalog = open_catalog(config)
    try:
        target = resolve_item(catalog, item)
        console.print(f"[bold]{target.filename}[/bold] (item {target.id})")
        console.print(f"  Path: {target.path}", markup=False)

        members = [m for m in catalog.get_group_members(target) if m.id != target.id]
        console.print(f"  Group leader: {target.leader_id}")
        for member in members:
            console.print(f"  • {member.filename} (item {member.id})")

        tags = sorted(catalog.get_tags(target))
        console.print(f"  Tags: {', '.join(tags) if tags else '(none)'}", markup=False)
    finally:
        catalog.session.close()


@click.command(name="tag")
@click.argument("item")
@click.argument("tags", nargs=-1, required=True)
@click.pass_context
def tag_command(ctx, item: str, tags: tuple[str, ...]):
    """Attach TAGS to ITEM."""
    _, config = load_config(ctx)

    catalog = open_catalog(config)
    try:
        target = resolve_item(catalog, item)
        for tag in tags:
            catalog.attach_tag(tag, target)
        console.print(f"✓ Tagged {target.filename} with {', '.join(tags)}", markup=False)
    except ValueError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    finally:
        catalog.session.close()


@click.command(name="watch")
@click.option(
    "--folder",
    "folders",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Inbox folder to watch (repeatable; overrides config)",
)
@click.option("--existing/--no-existing", default=True, help="Import files already in the inbox first")
@click.pass_context
def watch_command(ctx, folders: tuple[Path, ...], existing: bool):
    """Watch inbox folders and import new images as they arrive."""
    _, config = load_config(ctx)

    settings = config.imports.model_copy()
    if folders:
        settings.inbox_folders = list(folders)
    if not settings.inbox_folders:
        console.print("[yellow]No inbox folders configured.[/yellow] Use --folder or set imports.inbox_folders.")
        sys.exit(1)

    catalog = open_catalog(config)
    listener = ImportIgnoreListener(ImportFilter.from_settings(settings))
    watcher = ImportWatcher(settings, CatalogImporter(catalog, [listener]))

    try:
        if existing:
            report = watcher.import_existing()
            console.print(
                f"[green]✓ Imported {len(report.imported)} existing image(s)[/green], "
                f"ignored {report.ignored_count}"
            )

        with watcher:
            console.print("[cyan]Watching for new images. Press Ctrl+C to stop.[/cyan]")
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        console.print(
            f"\n✓ Stopped. Imported {watcher.imported_count}, ignored {watcher.ignored_count}."
        )
    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        logger.exception("Watch command error")
        sys.exit(1)
    finally:
        catalog.session.close()
