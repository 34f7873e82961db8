"""Command-line interface for the Google Drive backup application."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich import print as rprint
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config.settings import BackupConfig, SettingsStore
from .exceptions import DriveBackupError
from .sync.backup_manager import DriveBackup
from .sync.orchestrator import BackupReport, FileResult
from .sync.worker import BackupWorker, interval_ticker
from .utils.file_utils import FileHelper
from .utils.logging import setup_logging

console = Console()

CONFIG_OPTION = click.option(
    '--config', '-c',
    type=click.Path(path_type=Path),
    default=Path('config.yml'),
    help='Path to configuration file',
)


def _load(config: Path) -> SettingsStore:
    """Open the settings file, generating a placeholder when it is missing."""
    settings = SettingsStore(config)
    if not settings.exists():
        settings.init_default()
        console.print(f"❌ Failed to read the configuration file {config}", style="red bold")
        console.print("Generated a new dummy configuration file. Please, fill it up.", style="yellow")
        sys.exit(1)
    return settings


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Google Drive Backup Tool

    Incremental backups of a Google Drive to local disk. The first run
    downloads everything; later runs only fetch files created or modified
    since the previous run.
    """
    pass


@cli.command()
@CONFIG_OPTION
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def backup(config: Path, verbose: bool):
    """Run a single backup pass."""
    try:
        settings = _load(config)
        with console.status("Loading configuration..."):
            backup_config = settings.read()
        setup_logging(backup_config, verbose=verbose)
        console.print(f"✅ Configuration loaded from {config}", style="green")

        report = asyncio.run(_run_backup_async(settings, backup_config))
        _display_report(report)

        if report.failed:
            sys.exit(2)

    except DriveBackupError as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)


async def _run_backup_async(settings: SettingsStore, backup_config: BackupConfig) -> BackupReport:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Backing up Google Drive", total=None)

        def _on_progress(result: FileResult, completed: int, total: int) -> None:
            progress.update(task_id, completed=completed, total=total)

        engine = DriveBackup.from_settings(settings, backup_config, progress_callback=_on_progress)
        return await engine.backup_changes()


def _display_report(report: BackupReport):
    """Display backup results in a table."""
    summary = report.to_dict()

    table = Table(title="Backup Results")
    table.add_column("Files Processed", justify="right")
    table.add_column("Downloaded", justify="right", style="green")
    table.add_column("Exported", justify="right", style="cyan")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Data Written", justify="right")

    table.add_row(
        str(summary['files_processed']),
        str(summary['files_downloaded']),
        str(summary['files_exported']),
        str(summary['files_failed']),
        FileHelper.format_file_size(summary['bytes_written']),
    )
    console.print(table)

    if summary['errors']:
        rprint(f"\n⚠️ [yellow]{len(summary['errors'])} file(s) were not backed up:[/yellow]")
        for error in summary['errors']:
            rprint(f"   • [red]{error}[/red]")


@cli.command()
@CONFIG_OPTION
@click.option('--interval', '-i', type=int, default=None,
              help='Seconds between passes (overrides backup_interval)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def run(config: Path, interval: Optional[int], verbose: bool):
    """Run backup passes forever on a fixed interval."""
    try:
        settings = _load(config)
        backup_config = settings.read()
        setup_logging(backup_config, verbose=verbose)
        interval = interval or backup_config.backup_interval
        console.print(f"🚀 Backing up every {interval} seconds (Ctrl+C to stop)")
        asyncio.run(_run_forever(settings, backup_config, interval))
    except DriveBackupError as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n👋 Stopped", style="yellow")


async def _run_forever(settings: SettingsStore, backup_config: BackupConfig, interval: int):
    worker = BackupWorker(DriveBackup.from_settings(settings, backup_config))
    ticker = asyncio.create_task(interval_ticker(worker, interval))
    try:
        await worker.run()
    finally:
        ticker.cancel()


@cli.command()
@CONFIG_OPTION
def status(config: Path):
    """Show the backup location and watermark."""
    try:
        backup_config = _load(config).read()
    except DriveBackupError as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

    drive = backup_config.google_drive
    table = Table(title="Google Drive Backup")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Backup prefix", drive.prefix)
    table.add_row("Last backup", drive.prev_update_time or "never (next run is a full backup)")
    table.add_row("Interval", f"{backup_config.backup_interval}s")
    table.add_row("Parallel downloads", str(backup_config.sync_options.parallel_downloads))
    table.add_row("Credentials", "⚠️ placeholder" if backup_config.is_placeholder() else "✅ configured")
    console.print(table)


@cli.command('init-config')
@CONFIG_OPTION
def init_config(config: Path):
    """Initialize a new configuration file."""
    if config.exists():
        if not click.confirm(f"Configuration file {config} already exists. Overwrite?"):
            return

    SettingsStore(config).init_default()

    console.print(f"✅ Configuration saved to {config}", style="green")
    console.print("\n📝 Next steps:")
    console.print("1. Fill in client_id, client_secret and refresh_token under google_drive")
    console.print("2. Run 'drive-backup test-connection' to verify access")
    console.print("3. Run 'drive-backup backup' to perform the initial backup")


@cli.command('test-connection')
@CONFIG_OPTION
def test_connection(config: Path):
    """Test access to Google Drive."""
    try:
        backup_config = _load(config).read()
        engine = DriveBackup.from_settings(SettingsStore(config), backup_config)
    except DriveBackupError as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

    with console.status("Testing connection..."):
        connected = engine.client.test_connection()

    if connected:
        console.print("🎉 Google Drive connection successful!", style="green bold")
    else:
        console.print("⚠️ Google Drive connection failed. Check your configuration.", style="yellow bold")
        sys.exit(1)


if __name__ == '__main__':
    cli()
