"""Backup records and the on-disk backup catalog"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

CHECKPOINTS_FILE = "xtrabackup_checkpoints"
FULL_DIR = "full"
INCREMENTAL_DIR = "incremental"

# backup_type values written by xtrabackup into the checkpoints file
FULL_BACKUP_TYPES = {"full-backuped", "full-prepared"}
INCREMENTAL_BACKUP_TYPES = {"incremental"}


class BackupKind(Enum):
    """Kind of a physical backup"""

    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class Backup:
    """A full or incremental backup bounded by an LSN range"""

    kind: BackupKind
    path: Path
    from_lsn: int
    to_lsn: int
    name: str = field(init=False, compare=False)

    def __post_init__(self):
        if self.from_lsn > self.to_lsn:
            raise ValueError(f"Backup {self.path}: from_lsn {self.from_lsn} is greater than to_lsn {self.to_lsn}")
        object.__setattr__(self, "path", Path(self.path))
        object.__setattr__(self, "name", Path(self.path).name)

    @classmethod
    def full(cls, path: str | Path, from_lsn: int, to_lsn: int) -> "Backup":
        return cls(BackupKind.FULL, Path(path), from_lsn, to_lsn)

    @classmethod
    def incremental(cls, path: str | Path, from_lsn: int, to_lsn: int) -> "Backup":
        return cls(BackupKind.INCREMENTAL, Path(path), from_lsn, to_lsn)

    @property
    def is_full(self) -> bool:
        return self.kind is BackupKind.FULL

    def sort_key(self) -> tuple[int, str]:
        """Creation order: ascending to_lsn, directory name breaks ties"""
        return (self.to_lsn, self.name)

    def __str__(self) -> str:
        return f"{self.kind.value} backup {self.name} ({self.from_lsn} -> {self.to_lsn})"


class BackupCatalog(Protocol):
    """Lookup capability over backups stored below a backup base directory"""

    def list_fulls(self, backup_base_dir: str | Path) -> list[Backup]: ...

    def list_incrementals(self, backup_base_dir: str | Path) -> list[Backup]: ...

    def find(self, directory: str | Path) -> Backup | None: ...


def parse_checkpoints(text: str) -> dict[str, str]:
    """Parse the ``key = value`` lines of an xtrabackup checkpoints file"""
    values = {}
    for line in text.splitlines():
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip()
    return values


class FilesystemCatalog:
    """Reads backups from ``<base>/full/*`` and ``<base>/incremental/*`` by default

    Each backup directory carries the checkpoints file xtrabackup writes
    next to the data files; its ``backup_type``, ``from_lsn`` and
    ``to_lsn`` entries classify the directory.
    """

    def __init__(
        self,
        full_dir: str = FULL_DIR,
        incremental_dir: str = INCREMENTAL_DIR,
        checkpoints_file: str = CHECKPOINTS_FILE,
    ):
        self.full_dir = full_dir
        self.incremental_dir = incremental_dir
        self.checkpoints_file = checkpoints_file
        self.logger = logging.getLogger("FilesystemCatalog")

    def full_backup_path(self, backup_base_dir: str | Path) -> Path:
        return Path(backup_base_dir) / self.full_dir

    def incremental_backup_path(self, backup_base_dir: str | Path) -> Path:
        return Path(backup_base_dir) / self.incremental_dir

    def list_fulls(self, backup_base_dir: str | Path) -> list[Backup]:
        """Full backups, oldest first"""
        return self._list(self.full_backup_path(backup_base_dir), BackupKind.FULL)

    def list_incrementals(self, backup_base_dir: str | Path) -> list[Backup]:
        """Incremental backups, oldest first"""
        return self._list(self.incremental_backup_path(backup_base_dir), BackupKind.INCREMENTAL)

    def find(self, directory: str | Path) -> Backup | None:
        """Classify a single directory, None if it is not a backup"""
        directory = Path(directory)
        checkpoints = directory / self.checkpoints_file
        if not directory.is_dir() or not checkpoints.is_file():
            return None

        try:
            values = parse_checkpoints(checkpoints.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Cannot read {checkpoints}: {e}")
            return None

        backup_type = values.get("backup_type", "")
        if backup_type in FULL_BACKUP_TYPES:
            kind = BackupKind.FULL
        elif backup_type in INCREMENTAL_BACKUP_TYPES:
            kind = BackupKind.INCREMENTAL
        else:
            self.logger.debug(f"Unknown backup_type '{backup_type}' in {checkpoints}")
            return None

        try:
            return Backup(kind, directory, int(values["from_lsn"]), int(values["to_lsn"]))
        except (KeyError, ValueError) as e:
            self.logger.warning(f"Invalid LSN information in {checkpoints}: {e}")
            return None

    def _list(self, path: Path, kind: BackupKind) -> list[Backup]:
        if not path.is_dir():
            return []

        backups = []
        for entry in sorted(path.iterdir()):
            if not entry.is_dir():
                continue
            backup = self.find(entry)
            if backup is None:
                self.logger.warning(f"Skipping {entry}: not a recognized backup")
                continue
            if backup.kind is not kind:
                self.logger.warning(f"Skipping {entry}: {backup.kind.value} backup found in {path}")
                continue
            backups.append(backup)

        backups.sort(key=Backup.sort_key)
        return backups
