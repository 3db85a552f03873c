"""Command Line Interface for Xtraprep"""

import sys
from typing import Any, cast

import click
from rich.console import Console
from rich.table import Table

from .core.applier import XtrabackupApplier
from .core.backups import FilesystemCatalog
from .core.config_manager import ConfigManager
from .core.errors import PrepareError
from .core.preparer import BackupPreparer, PrepareOptions
from .utils.logging_setup import setup_logging
from .utils.notifications import NotificationManager

console = Console()

# Lazy-initialized components (created on first access to avoid startup cost)
_components: dict[str, Any] = {}


def _get_config() -> ConfigManager:
    if "config" not in _components:
        _components["config"] = ConfigManager(_components.get("config_dir"))
    return cast("ConfigManager", _components["config"])


def _get_catalog() -> FilesystemCatalog:
    if "catalog" not in _components:
        _components["catalog"] = FilesystemCatalog(**_get_config().get_layout())
    return cast("FilesystemCatalog", _components["catalog"])


def _get_preparer() -> BackupPreparer:
    if "preparer" not in _components:
        config = _get_config()
        applier = XtrabackupApplier(config.get_xtrabackup_binary(), config.get_apply_timeout())
        _components["preparer"] = BackupPreparer(_get_catalog(), applier)
    return cast("BackupPreparer", _components["preparer"])


def _get_notifier() -> NotificationManager | None:
    if "notifier" not in _components:
        enabled = _get_config().get_setting("notifications.enabled", False)
        _components["notifier"] = NotificationManager() if enabled else None
    return cast("NotificationManager | None", _components["notifier"])


@click.group()
@click.option("--config-dir", help="Directory holding settings.yaml (default: ~/.xtraprep)")
@click.option("--quiet", "-q", is_flag=True, help="Do not echo log messages to the console")
def cli(config_dir, quiet):
    """Xtraprep - prepare XtraBackup backups for restore"""
    if config_dir:
        _components["config_dir"] = config_dir
    config = _get_config()
    setup_logging(config.get_log_dir(), config.get_setting("logging.level", "INFO"), console=not quiet)


@cli.command()
@click.argument("output_dir")
@click.argument("backup_base_dir")
@click.option("--backup-dir", help="Prepare this backup instead of the latest one")
@click.option("--user", "-u", help="MySQL user (default: mysql.user setting)")
@click.option("--password", "-p", help="MySQL password (default: mysql.password setting)")
def prepare(output_dir, backup_base_dir, backup_dir, user, password):
    """Prepare the latest (or a specific) backup in OUTPUT_DIR"""
    console.print(f"[bold cyan]Preparing backup from '{backup_base_dir}' in '{output_dir}'...[/bold cyan]")
    notifier = _get_notifier()

    try:
        config_user, config_password = _get_config().get_credentials()
        options = PrepareOptions(
            output_dir=output_dir,
            backup_base_dir=backup_base_dir,
            backup_dir=backup_dir,
            user=user or config_user,
            password=password or config_password,
        )
        result = _get_preparer().prepare(options)
    except (PrepareError, OSError) as e:
        console.print(f"[red]✗[/red] {e}")
        if notifier:
            notifier.notify_prepare_failure(backup_dir or backup_base_dir, str(e))
        sys.exit(1)

    console.print(f"[green]✓[/green] Prepared {result.target} ({len(result.chain)} backup(s), {result.applies} apply step(s))")
    console.print(f"[yellow]{result.restore_hint}[/yellow]")
    if notifier:
        notifier.notify_prepare_success(result.target.name, str(result.destination))


@cli.command("list-backups")
@click.argument("backup_base_dir")
def list_backups(backup_base_dir):
    """List full and incremental backups in BACKUP_BASE_DIR"""
    catalog = _get_catalog()
    backups = catalog.list_fulls(backup_base_dir) + catalog.list_incrementals(backup_base_dir)

    if not backups:
        console.print(f"[yellow]No backups found in {backup_base_dir}[/yellow]")
        return

    table = Table(title="Available Backups", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("From LSN", style="white", justify="right")
    table.add_column("To LSN", style="white", justify="right")
    table.add_column("Path", style="dim")

    for backup in backups:
        table.add_row(backup.name, backup.kind.value, str(backup.from_lsn), str(backup.to_lsn), str(backup.path))

    console.print(table)


@cli.command("show-chain")
@click.argument("backup_base_dir")
@click.argument("backup_dir", required=False)
def show_chain(backup_base_dir, backup_dir):
    """Show the backups that preparing BACKUP_DIR (default: latest) would apply"""
    preparer = _get_preparer()
    try:
        target = preparer.select_target(backup_base_dir, backup_dir)
        chain = preparer.resolve(backup_base_dir, target)
    except PrepareError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)

    table = Table(title=f"Chain for {target.name}", show_header=True, header_style="bold magenta")
    table.add_column("#", style="white", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("LSN range", style="white")
    table.add_column("Apply", style="yellow")

    for index, backup in enumerate(chain):
        mode = "final" if index == len(chain) - 1 else "redo-only"
        table.add_row(str(index), backup.name, backup.kind.value, f"{backup.from_lsn} -> {backup.to_lsn}", mode)

    console.print(table)


@cli.command("encrypt-password")
@click.password_option(help="MySQL password to store")
def encrypt_password(password):
    """Store the MySQL password encrypted in settings.yaml"""
    config = _get_config()
    config.store_password(password)
    console.print(f"[green]✓[/green] Password stored encrypted in {config.settings_file}")
