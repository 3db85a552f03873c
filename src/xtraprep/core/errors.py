"""Exceptions raised while preparing XtraBackup backups"""


class PrepareError(Exception):
    """Base class for all prepare failures"""


class InvalidArgumentError(PrepareError):
    """A required argument is missing or empty"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Argument '{name}' must not be empty")


class NoFullBackupFoundError(PrepareError):
    """The catalog contains no full backup"""

    def __init__(self, backup_base_dir: str):
        self.backup_base_dir = backup_base_dir
        super().__init__(f"Cannot prepare backup: No full backup found in {backup_base_dir}")


class BackupNotFoundError(PrepareError):
    """An explicitly requested directory is not a recognized backup"""

    def __init__(self, backup_dir: str):
        self.backup_dir = backup_dir
        super().__init__(f"Not a recognized backup directory: {backup_dir}")


class ChainError(PrepareError):
    """Backup LSNs do not form a valid chain"""


class ChainBrokenError(ChainError):
    """No predecessor covers the required LSN"""

    def __init__(self, backup_name: str, from_lsn: int):
        self.backup_name = backup_name
        self.from_lsn = from_lsn
        super().__init__(f"Backup chain is broken: no backup ends at LSN {from_lsn} (required by {backup_name})")


class AmbiguousChainError(ChainError):
    """The backups around a chain element do not form a single history"""

    def __init__(self, backup_name: str, from_lsn: int, candidates: list[str]):
        self.backup_name = backup_name
        self.from_lsn = from_lsn
        self.candidates = candidates
        super().__init__(
            f"Backup chain is ambiguous at LSN {from_lsn} (required by {backup_name}): "
            f"{len(candidates)} candidates {', '.join(candidates)}"
        )


class ApplyToolError(PrepareError):
    """The apply tool exited non-zero, timed out, or could not be started"""

    def __init__(self, exit_code: int | None, output: str, command: str = ""):
        self.exit_code = exit_code
        self.output = output
        self.command = command
        status = "timed out" if exit_code is None else f"exited with code {exit_code}"
        super().__init__(f"{command or 'apply tool'} {status}")


class CredentialsError(PrepareError):
    """The stored MySQL password cannot be decrypted"""

    def __init__(self, key_file: str):
        self.key_file = key_file
        super().__init__(
            f"Cannot decrypt mysql.password with {key_file}; store it again with 'xtraprep encrypt-password'"
        )
