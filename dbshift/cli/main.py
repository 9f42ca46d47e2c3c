"""Main CLI entry point for dbshift."""

import click
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..core.config import ConfigManager, CONFIG_DIR_NAME
from ..core.exceptions import StorageError, TransferError
from ..core.models import IntegrityResult, StorageMode, StorageState


def _format_bytes(size: int) -> str:
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _get_manager(ctx: click.Context):
    """Build a storage manager from the loaded configuration or exit."""
    from ..storage.manager import StorageManager

    try:
        return StorageManager.from_config(ctx.obj['config'], ctx.obj['project_root'])
    except (StorageError, OSError, ValueError) as e:
        click.echo(f"✗ Failed to open storage: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Path to configuration file')
@click.option('--project-root', '-p', type=click.Path(exists=True),
              help='Project root directory')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], project_root: Optional[str], verbose: bool):
    """dbshift - Move SQLite database files between device and external storage."""
    ctx.ensure_object(dict)

    project_path = Path(project_root) if project_root else Path.cwd()
    config_manager = ConfigManager(project_path)

    if config:
        config_data = config_manager.load_config(Path(config))
    else:
        config_data = config_manager.load_config()

    validation_errors = config_manager.validate_config(config_data)
    if validation_errors:
        click.echo("Configuration validation errors:", err=True)
        for error in validation_errors:
            click.echo(f"  - {error}", err=True)
        if not ctx.resilient_parsing:
            sys.exit(1)

    level = 'DEBUG' if verbose else str(config_data['logging']['level']).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    ctx.obj['config'] = config_data
    ctx.obj['config_manager'] = config_manager
    ctx.obj['project_root'] = project_path
    ctx.obj['verbose'] = verbose


@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing configuration')
@click.option('--external-dir', type=click.Path(file_okay=False),
              help='Directory on the external medium')
@click.pass_context
def init(ctx: click.Context, force: bool, external_dir: Optional[str]):
    """Initialize dbshift in the current project."""
    project_root = ctx.obj['project_root']
    config_manager = ctx.obj['config_manager']
    verbose = ctx.obj['verbose']

    click.echo(f"Initializing dbshift in {project_root}")

    if config_manager.get_config_path().exists() and not force:
        click.echo("dbshift is already initialized in this project.")
        click.echo("Use --force to reinitialize.")
        return

    config_data = config_manager.get_default_config()
    if external_dir:
        config_data['storage']['external_dir'] = str(Path(external_dir).resolve())

    if config_manager.save_config(config_data):
        click.echo(f"✓ Created configuration file: {config_manager.get_config_path()}")
    else:
        click.echo("✗ Failed to create configuration file", err=True)
        sys.exit(1)

    ctx.obj['config'] = config_data
    manager = _get_manager(ctx)
    if verbose:
        click.echo(f"✓ Device directory: {manager.locations.device_dir}")
        click.echo(f"✓ Settings file: {manager.settings.db_path}")

    click.echo("dbshift initialized successfully.")


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show the current storage mode and transfer state."""
    project_root = ctx.obj['project_root']

    if not (project_root / CONFIG_DIR_NAME).exists():
        click.echo("Status: Not initialized")
        click.echo("Run 'dbshift init' to initialize")
        return

    manager = _get_manager(ctx)
    record = manager.get_transfer_record()
    state = manager.get_storage_state()

    table = Table(title=f"dbshift status for {project_root}", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Storage mode", record.current_mode.name.lower())
    table.add_row("Previous mode", record.previous_mode.name.lower())
    table.add_row("Storage state", state.name.lower())
    table.add_row("Last transfer", "succeeded" if record.last_transfer_succeeded else "failed")
    table.add_row("Device directory", str(manager.locations.device_dir))
    table.add_row("External directory", str(manager.locations.external_dir or "not configured"))
    table.add_row("Available space", _format_bytes(manager.get_available_space()))

    Console().print(table)

    if record.pending:
        click.echo("A transfer is pending. Run 'dbshift retry' to finish it.")


@cli.command('mode')
@click.argument('mode', type=click.Choice(['device', 'external'], case_sensitive=False))
@click.pass_context
def set_mode(ctx: click.Context, mode: str):
    """Switch the storage mode and move database files."""
    manager = _get_manager(ctx)
    new_mode = StorageMode.from_name(mode)

    if manager.get_storage_mode() == new_mode:
        click.echo(f"Storage mode is already {mode.lower()}.")
        return

    if new_mode is StorageMode.EXTERNAL and \
            manager.refresh_external_availability() is not StorageState.READWRITE:
        click.echo("Warning: external storage is not writable.", err=True)

    try:
        manager.set_storage_mode(new_mode)
    except TransferError as e:
        click.echo(f"✗ {e}", err=True)
        click.echo(f"Storage mode changed to {mode.lower()}, but files were not moved.", err=True)
        click.echo("Run 'dbshift retry' once the problem is fixed.", err=True)
        sys.exit(1)

    click.echo(f"✓ Storage mode changed to {mode.lower()}")


@cli.command()
@click.pass_context
def retry(ctx: click.Context):
    """Retry a transfer that failed during the last mode change."""
    manager = _get_manager(ctx)

    try:
        if manager.retry_pending_transfer():
            click.echo("✓ Pending transfer completed")
        else:
            click.echo("No pending transfer.")
    except TransferError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@cli.group()
def checksum():
    """Compute, store and verify database checksums."""
    pass


@checksum.command('compute')
@click.argument('name')
@click.pass_context
def checksum_compute(ctx: click.Context, name: str):
    """Print the checksum of a database."""
    value = _get_manager(ctx).compute_checksum(name)
    if value is None:
        click.echo(f"Database not found: {name}", err=True)
        sys.exit(1)
    click.echo(value)


@checksum.command('store')
@click.argument('name')
@click.pass_context
def checksum_store(ctx: click.Context, name: str):
    """Compute a database's checksum and store it beside the file."""
    value = _get_manager(ctx).store_checksum(name)
    if value is None:
        click.echo(f"Database not found: {name}", err=True)
        sys.exit(1)
    click.echo(f"✓ Stored checksum {value}")


@checksum.command('verify')
@click.argument('name')
@click.option('--expected', help='Checksum to compare against instead of the stored one')
@click.pass_context
def checksum_verify(ctx: click.Context, name: str, expected: Optional[str]):
    """Check a database against its stored or an expected checksum."""
    manager = _get_manager(ctx)
    if expected is None:
        result = manager.check_integrity(name)
    else:
        result = manager.check_integrity(name, expected)

    if result is IntegrityResult.VERIFIED:
        click.echo(f"✓ {name}: checksum verified")
    elif result is IntegrityResult.MISMATCHED:
        click.echo(f"✗ {name}: checksum mismatch", err=True)
        sys.exit(1)
    else:
        click.echo(f"? {name}: cannot verify, database or checksum missing", err=True)
        sys.exit(2)


if __name__ == '__main__':
    cli()
