"""xmlstore CLI: inspect and maintain XML record store files.

Commands:
    xmlstore init                        create xmlstore.toml
    xmlstore create PATH --type M:Cls    write an empty store file
    xmlstore show PATH                   table of the raw records in a store
    xmlstore check PATH --type M:Cls     decode every record, report failures
    xmlstore delete PATH ID --type M:Cls remove one record and commit

``--type`` takes ``package.module:ClassName``; the class must be importable
from the current environment.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

import click

from xmlstore.config import StoreConfig, init_config, load_config
from xmlstore.errors import StoreError
from xmlstore.mapper import leaf_values
from xmlstore.store import RecordStore, load_document

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> StoreConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _import_type(spec: str) -> type:
    """Resolve ``module:Class`` to a class object."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected module:Class, got {spec!r}", param_hint="--type")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name}: {exc}", param_hint="--type") from exc
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="--type")
    if not isinstance(obj, type):
        raise click.BadParameter(f"{spec} is not a class", param_hint="--type")
    return obj


def _open(record_type: type, path: str) -> RecordStore:
    try:
        return RecordStore.load(record_type, path, config=_load_cfg())
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc


type_option = click.option(
    "--type", "type_spec", required=True, metavar="MODULE:CLASS", help="Record type"
)

# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="xmlstore")
@click.option("-v", "--verbose", is_flag=True, help="Log store activity to stderr")
def cli(verbose: bool) -> None:
    """xmlstore: typed records in a single XML file."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")


# ---------------------------------------------------------------------------
# xmlstore init
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
def init(root: str) -> None:
    """Create xmlstore.toml with commented defaults."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("xmlstore.toml already exists, skipping init")


# ---------------------------------------------------------------------------
# xmlstore create / delete
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@type_option
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def create(path: str, type_spec: str, force: bool) -> None:
    """Write an empty store for a record type at PATH."""
    record_type = _import_type(type_spec)
    if Path(path).exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    try:
        store = RecordStore.create(record_type, path, config=_load_cfg())
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created empty {record_type.__name__} store at {store.path}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("identifier")
@type_option
def delete(path: str, identifier: str, type_spec: str) -> None:
    """Delete the record IDENTIFIER from PATH and commit."""
    store = _open(_import_type(type_spec), path)
    try:
        store.delete(identifier)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    store.commit()
    click.echo(f"Deleted {identifier}")


# ---------------------------------------------------------------------------
# xmlstore show / check
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", default=50, show_default=True, help="Max records to show (0 = all)")
def show(path: str, limit: int) -> None:
    """Print the records in PATH as a table (no record type needed)."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    cfg = _load_cfg()
    try:
        root = load_document(path)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc

    nodes = list(root)
    table = Table(title=f"{root.tag} ({path})", show_header=True, header_style="bold")
    table.add_column(cfg.id_attribute, style="dim", no_wrap=True)
    columns: list[str] = []
    for node in nodes:
        for name in leaf_values(node):
            if name not in columns:
                columns.append(name)
    for name in columns:
        table.add_column(name)

    shown = nodes if limit <= 0 else nodes[:limit]
    for node in shown:
        values = leaf_values(node)
        table.add_row(
            escape(node.get(cfg.id_attribute, "")),
            *(escape(values.get(c, "")) for c in columns),
        )

    console = Console()
    console.print(table)
    if len(shown) < len(nodes):
        console.print(f"[dim]… {len(nodes) - len(shown)} more[/dim]")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@type_option
def check(path: str, type_spec: str) -> None:
    """Decode every record in PATH; exit 1 if any fail."""
    store = _open(_import_type(type_spec), path)
    records = store.read_all(errors="skip")
    for err in store.decode_errors:
        click.echo(f"  {err}", err=True)

    duplicates = store.duplicate_ids()
    click.echo(f"{len(records)} ok, {len(store.decode_errors)} failed")
    if duplicates:
        click.echo(f"Warning: duplicate IDs (first one wins): {', '.join(duplicates)}", err=True)
    if store.decode_errors:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
