"""Backup Preparer for Xtraprep

Selects the backup to prepare, resolves its chain and drives the staged
apply-log protocol against a copy of the chain's full backup.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .applier import Applier, ApplyOptions
from .backups import Backup, BackupCatalog, BackupKind
from .chain import resolve_chain
from .errors import BackupNotFoundError, InvalidArgumentError, NoFullBackupFoundError
from .filesystem import FileOps, LocalFileOps

INCOMPLETE_MARKER_SUFFIX = ".xtraprep-incomplete"


class PrepareState(Enum):
    """Progress of a prepare run"""

    UNSTAGED = "unstaged"
    COPIED = "copied"
    REDO_ONLY_APPLIED = "redo-only-applied"
    FINAL_APPLIED = "final-applied"
    DONE = "done"


@dataclass(frozen=True)
class PrepareOptions:
    """Arguments of a prepare run

    Attributes:
        output_dir: Directory the prepared copy is created in (required)
        backup_base_dir: Directory holding the full/ and incremental/ backups (required)
        backup_dir: Prepare this backup instead of the latest usable one (default: None)
        user: MySQL user passed to the apply tool (default: None, tool defaults apply)
        password: MySQL password passed to the apply tool (default: None)
    """

    output_dir: str
    backup_base_dir: str
    backup_dir: str | None = None
    user: str | None = None
    password: str | None = None

    def validate(self) -> None:
        for name in ("output_dir", "backup_base_dir"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise InvalidArgumentError(name)


@dataclass
class PrepareResult:
    """Outcome of a completed prepare run"""

    target: Backup
    chain: list[Backup]
    destination: Path
    applies: int = 0
    state: PrepareState = PrepareState.UNSTAGED

    @property
    def restore_hint(self) -> str:
        return (
            "Backup preparation finished. You can now halt mysqld and apply it with something like "
            f"'innobackupex --copy-back {self.destination} && chown -R mysql:mysql /var/lib/mysql'."
        )


class BackupPreparer:
    """Prepares full or incremental XtraBackup backups for restore

    Concurrent prepares into the same output directory are not supported;
    callers must serialize them.
    """

    def __init__(self, catalog: BackupCatalog, applier: Applier, file_ops: FileOps | None = None):
        self.catalog = catalog
        self.applier = applier
        self.file_ops = file_ops or LocalFileOps()
        self.logger = logging.getLogger("BackupPreparer")

    def select_target(self, backup_base_dir: str, backup_dir: str | None = None) -> Backup:
        """Pick the backup to prepare

        Args:
            backup_base_dir: Directory holding the backups
            backup_dir: Explicit backup directory, or None for the newest usable recovery point

        Returns:
            The full or incremental backup to prepare
        """
        if backup_dir is not None:
            backup = self.catalog.find(backup_dir)
            if backup is None:
                raise BackupNotFoundError(backup_dir)
            return backup

        full_backups = self.catalog.list_fulls(backup_base_dir)
        if not full_backups:
            raise NoFullBackupFoundError(backup_base_dir)

        last_full = full_backups[-1]
        inc_backups = self.catalog.list_incrementals(backup_base_dir)

        if not inc_backups:
            self.logger.info("No incremental backups found: Preparing the latest full backup...")
            return last_full

        last_inc = inc_backups[-1]
        if last_inc.to_lsn <= last_full.to_lsn:
            self.logger.info("Latest incremental backup <= latest full backup: Preparing the latest full backup...")
            return last_full

        self.logger.info("Preparing the latest incremental backup...")
        return last_inc

    def resolve(self, backup_base_dir: str, target: Backup) -> list[Backup]:
        """Chain of backups to apply for ``target``, full backup first"""
        match target.kind:
            case BackupKind.FULL:
                return [target]
            case BackupKind.INCREMENTAL:
                return resolve_chain(
                    target,
                    self.catalog.list_incrementals(backup_base_dir),
                    self.catalog.list_fulls(backup_base_dir),
                )

    def prepare(self, options: PrepareOptions) -> PrepareResult:
        """Prepare the selected backup in ``options.output_dir``

        Raises:
            PrepareError: Any failure; the destination is left with its incomplete marker
            OSError: Copy, move or delete failures
        """
        options.validate()

        target = self.select_target(options.backup_base_dir, options.backup_dir)
        chain = self.resolve(options.backup_base_dir, target)
        output_dir = Path(options.output_dir)
        result = PrepareResult(target=target, chain=chain, destination=output_dir / target.name)
        marker = output_dir / f"{target.name}{INCOMPLETE_MARKER_SUFFIX}"

        try:
            # Until the rename the incomplete copy lives under the full backup's name
            result.destination = output_dir / chain[0].name
            dest_dir = self._stage(output_dir, chain[0], marker, target)
            result.state = PrepareState.COPIED

            if len(chain) > 1:
                # Name the prepared directory after the latest increment
                dest_dir = self._rename(dest_dir, output_dir / chain[-1].name)
            result.destination = dest_dir

            self._apply_chain(dest_dir, chain, options, result)

        except Exception:
            self.logger.error(
                f"Prepare of {target.name} stopped in state '{result.state.value}'; "
                f"{result.destination} is incomplete and has not been cleaned up"
            )
            raise

        self.file_ops.remove_marker(marker)
        result.state = PrepareState.DONE
        self.logger.info(result.restore_hint)
        return result

    def _apply_chain(self, dest_dir: Path, chain: list[Backup], options: PrepareOptions, result: PrepareResult) -> None:
        """Apply every chain element in order; only the last apply rolls back"""
        if len(chain) == 1:
            self.logger.info(f"Preparing full backup in {dest_dir}...")
            self._apply(dest_dir, options, result, redo_only=False)
            result.state = PrepareState.FINAL_APPLIED
            return

        last_index = len(chain) - 1
        for index, backup in enumerate(chain):
            if index == 0:
                self.logger.info(f"Preparing full backup {backup.from_lsn} -> {backup.to_lsn} in {dest_dir} ...")
                self._apply(dest_dir, options, result, redo_only=True)
                result.state = PrepareState.REDO_ONLY_APPLIED
            elif index == last_index:
                self.logger.info(
                    f"Applying the last increment #{index} {backup.from_lsn} -> {backup.to_lsn} to {dest_dir} ..."
                )
                self._apply(dest_dir, options, result, redo_only=False, incremental_dir=backup.path)
                result.state = PrepareState.FINAL_APPLIED
            else:
                self.logger.info(
                    f"Applying incremental backup #{index} {backup.from_lsn} -> {backup.to_lsn} to {dest_dir} ..."
                )
                self._apply(dest_dir, options, result, redo_only=True, incremental_dir=backup.path)

    def _apply(
        self,
        dest_dir: Path,
        options: PrepareOptions,
        result: PrepareResult,
        redo_only: bool,
        incremental_dir: Path | None = None,
    ) -> None:
        apply_options = ApplyOptions(
            redo_only=redo_only,
            incremental_dir=incremental_dir,
            user=options.user,
            password=options.password,
        )
        self.applier.apply(dest_dir, apply_options)
        result.applies += 1

    def _stage(self, output_dir: Path, full_backup: Backup, marker: Path, target: Backup) -> Path:
        """Copy the full backup into the output directory"""
        dest_dir = output_dir / full_backup.name
        self._rmdir_if_exists(dest_dir)

        self.logger.info(f"Copying {full_backup.path} to {output_dir}...")
        self.file_ops.make_dirs(output_dir)
        self.file_ops.write_marker(marker, f"Preparation of {target} has not finished\n")
        self.file_ops.copy_tree(full_backup.path, dest_dir)
        return dest_dir

    def _rename(self, dest_dir: Path, new_dest_dir: Path) -> Path:
        if new_dest_dir == dest_dir:
            return dest_dir
        self._rmdir_if_exists(new_dest_dir)
        self.file_ops.move(dest_dir, new_dest_dir)
        return new_dest_dir

    def _rmdir_if_exists(self, path: Path) -> None:
        if self.file_ops.exists(path):
            self.logger.info(f"Directory {path} already exists. Deleting it recursively.")
            self.file_ops.remove_tree(path)
