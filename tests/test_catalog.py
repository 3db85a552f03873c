"""Tests for the filesystem backup catalog"""

from conftest import write_backup

from xtraprep.core.backups import BackupKind, FilesystemCatalog, parse_checkpoints


def test_parse_checkpoints():
    values = parse_checkpoints("backup_type = incremental\nfrom_lsn = 100\nto_lsn=150\n\ngarbage line\n")
    assert values == {"backup_type": "incremental", "from_lsn": "100", "to_lsn": "150"}


def test_lists_backups_by_kind(backup_tree):
    catalog = FilesystemCatalog()

    fulls = catalog.list_fulls(backup_tree)
    incs = catalog.list_incrementals(backup_tree)

    assert [b.name for b in fulls] == ["2024_01_01_00_00_00"]
    assert fulls[0].kind is BackupKind.FULL
    assert [(b.from_lsn, b.to_lsn) for b in incs] == [(100, 150), (150, 200)]


def test_sorted_by_to_lsn(tmp_path):
    write_backup(tmp_path / "full" / "b", "full-backuped", 0, 100)
    write_backup(tmp_path / "full" / "a", "full-backuped", 0, 300)

    assert [b.name for b in FilesystemCatalog().list_fulls(tmp_path)] == ["b", "a"]


def test_skips_unrecognized_directories(backup_tree):
    (backup_tree / "incremental" / "empty").mkdir()
    write_backup(backup_tree / "incremental" / "bogus", "log-applied", 0, 10)
    write_backup(backup_tree / "incremental" / "misplaced", "full-backuped", 0, 10)
    (backup_tree / "incremental" / "stray-file").write_text("x")

    names = [b.name for b in FilesystemCatalog().list_incrementals(backup_tree)]
    assert names == ["2024_01_02_00_00_00", "2024_01_03_00_00_00"]


def test_missing_layout_directories(tmp_path):
    catalog = FilesystemCatalog()
    assert catalog.list_fulls(tmp_path) == []
    assert catalog.list_incrementals(tmp_path / "nowhere") == []


def test_find_classifies_directory(backup_tree):
    catalog = FilesystemCatalog()

    backup = catalog.find(backup_tree / "incremental" / "2024_01_03_00_00_00")

    assert backup.kind is BackupKind.INCREMENTAL
    assert (backup.from_lsn, backup.to_lsn) == (150, 200)
    assert catalog.find(backup_tree / "full" / "2024_01_01_00_00_00").is_full
    assert catalog.find(backup_tree / "missing") is None


def test_find_rejects_bad_lsns(tmp_path):
    bad = tmp_path / "bad"
    bad.mkdir()
    (bad / "xtrabackup_checkpoints").write_text("backup_type = incremental\nfrom_lsn = abc\nto_lsn = 10\n")
    inverted = write_backup(tmp_path / "inverted", "incremental", 200, 100)

    catalog = FilesystemCatalog()
    assert catalog.find(bad) is None
    assert catalog.find(inverted) is None


def test_custom_layout(tmp_path):
    write_backup(tmp_path / "base" / "2024", "full-backuped", 0, 100)
    write_backup(tmp_path / "incr" / "2024", "incremental", 100, 110)

    catalog = FilesystemCatalog(full_dir="base", incremental_dir="incr")
    assert len(catalog.list_fulls(tmp_path)) == 1
    assert len(catalog.list_incrementals(tmp_path)) == 1
