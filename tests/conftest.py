"""Shared fixtures: stub collaborators and on-disk backup trees"""

from pathlib import Path

import pytest
from rich.console import Console

from xtraprep import cli as cli_module
from xtraprep.core.backups import Backup
from xtraprep.core.errors import ApplyToolError


class StubCatalog:
    """In-memory catalog keyed by backup path"""

    def __init__(self, fulls=(), incrementals=()):
        self.fulls = list(fulls)
        self.incrementals = list(incrementals)
        self.calls: list[str] = []

    def list_fulls(self, backup_base_dir):
        self.calls.append("list_fulls")
        return list(self.fulls)

    def list_incrementals(self, backup_base_dir):
        self.calls.append("list_incrementals")
        return list(self.incrementals)

    def find(self, directory):
        self.calls.append("find")
        for backup in self.fulls + self.incrementals:
            if backup.path == Path(directory):
                return backup
        return None


class RecordingApplier:
    """Records apply calls, optionally failing on the n-th one (1-based)"""

    def __init__(self, fail_on: int | None = None):
        self.calls = []
        self.fail_on = fail_on

    def apply(self, directory, options):
        self.calls.append((directory, options))
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise ApplyToolError(1, "InnoDB: apply failed", "innobackupex --apply-log")


class RecordingFileOps:
    """Fake filesystem recording every mutating call"""

    def __init__(self, existing=()):
        self.existing = {Path(p) for p in existing}
        self.calls = []

    def exists(self, path):
        return Path(path) in self.existing

    def remove_tree(self, path):
        self.calls.append(("remove_tree", path))
        self.existing.discard(path)

    def copy_tree(self, source, destination):
        self.calls.append(("copy_tree", source, destination))
        self.existing.add(destination)

    def move(self, source, destination):
        self.calls.append(("move", source, destination))
        self.existing.discard(source)
        self.existing.add(destination)

    def make_dirs(self, path):
        self.calls.append(("make_dirs", path))
        self.existing.add(path)

    def write_marker(self, path, content):
        self.calls.append(("write_marker", path))
        self.existing.add(path)

    def remove_marker(self, path):
        self.calls.append(("remove_marker", path))
        self.existing.discard(path)

    def ops(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def full1():
    return Backup.full("/b/full1", 0, 100)


@pytest.fixture
def inc1():
    return Backup.incremental("/b/inc1", 100, 150)


@pytest.fixture
def inc2():
    return Backup.incremental("/b/inc2", 150, 200)


def write_backup(directory: Path, backup_type: str, from_lsn: int, to_lsn: int) -> Path:
    """Create a backup directory with an xtrabackup_checkpoints file"""
    directory.mkdir(parents=True)
    (directory / "xtrabackup_checkpoints").write_text(
        f"backup_type = {backup_type}\nfrom_lsn = {from_lsn}\nto_lsn = {to_lsn}\nlast_lsn = {to_lsn}\ncompact = 0\n"
    )
    (directory / "ibdata1").write_text(f"data {from_lsn}-{to_lsn}")
    return directory


@pytest.fixture
def backup_tree(tmp_path):
    """full/2024_01_01 (0 -> 100), incremental/2024_01_02 (100 -> 150), incremental/2024_01_03 (150 -> 200)"""
    base = tmp_path / "backups"
    write_backup(base / "full" / "2024_01_01_00_00_00", "full-backuped", 0, 100)
    write_backup(base / "incremental" / "2024_01_02_00_00_00", "incremental", 100, 150)
    write_backup(base / "incremental" / "2024_01_03_00_00_00", "incremental", 150, 200)
    return base


@pytest.fixture(autouse=True)
def reset_cli_components():
    cli_module._components.clear()
    yield
    cli_module._components.clear()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli_module, "console", Console(width=250))
