"""Core prepare pipeline: catalog, chain resolution, apply protocol"""

from .applier import ApplyOptions, XtrabackupApplier
from .backups import Backup, BackupKind, FilesystemCatalog
from .chain import resolve_chain
from .errors import (
    AmbiguousChainError,
    ApplyToolError,
    BackupNotFoundError,
    ChainBrokenError,
    ChainError,
    CredentialsError,
    InvalidArgumentError,
    NoFullBackupFoundError,
    PrepareError,
)
from .preparer import BackupPreparer, PrepareOptions, PrepareResult, PrepareState

__all__ = [
    "AmbiguousChainError",
    "ApplyOptions",
    "ApplyToolError",
    "Backup",
    "BackupKind",
    "BackupNotFoundError",
    "BackupPreparer",
    "ChainBrokenError",
    "ChainError",
    "CredentialsError",
    "FilesystemCatalog",
    "InvalidArgumentError",
    "NoFullBackupFoundError",
    "PrepareError",
    "PrepareOptions",
    "PrepareResult",
    "PrepareState",
    "XtrabackupApplier",
    "resolve_chain",
]
