"""Tests for settings loading and password encryption"""

import os

import pytest
import yaml

from xtraprep.core.config_manager import ConfigManager
from xtraprep.core.errors import CredentialsError


def write_settings(config_dir, data):
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "settings.yaml").write_text(yaml.dump(data))


def test_defaults_without_settings_file(tmp_path):
    config = ConfigManager(tmp_path / "cfg")

    assert config.settings == {}
    assert config.get_xtrabackup_binary() == "innobackupex"
    assert config.get_apply_timeout() == 4 * 3600
    assert config.get_layout() == {
        "full_dir": "full",
        "incremental_dir": "incremental",
        "checkpoints_file": "xtrabackup_checkpoints",
    }
    assert config.get_credentials() == (None, None)
    assert not (tmp_path / "cfg" / ".encryption_key").exists()


def test_dotted_settings(tmp_path):
    write_settings(tmp_path, {"timeouts": {"apply": 0}, "layout": {"full_dir": "base"}, "xtrabackup": {"binary": "xb"}})
    config = ConfigManager(tmp_path)

    assert config.get_setting("layout.full_dir") == "base"
    assert config.get_setting("layout.missing", "fallback") == "fallback"
    assert config.get_setting("xtrabackup.binary.nested", "x") == "x"
    assert config.get_apply_timeout() is None
    assert config.get_layout()["full_dir"] == "base"
    assert config.get_xtrabackup_binary() == "xb"


def test_plain_password_is_encrypted_on_load(tmp_path):
    write_settings(tmp_path, {"mysql": {"user": "backup", "password": "s3cret"}})

    config = ConfigManager(tmp_path)

    stored = yaml.safe_load((tmp_path / "settings.yaml").read_text())
    assert stored["mysql"]["password"].startswith("enc:")
    assert "s3cret" not in (tmp_path / "settings.yaml").read_text()
    assert config.get_credentials() == ("backup", "s3cret")
    assert os.stat(tmp_path / ".encryption_key").st_mode & 0o777 == 0o600

    # A second load reuses the key and leaves the value alone
    assert ConfigManager(tmp_path).get_credentials() == ("backup", "s3cret")


def test_store_password(tmp_path):
    config = ConfigManager(tmp_path / "cfg")
    config.store_password("hunter2")

    reloaded = ConfigManager(tmp_path / "cfg")
    assert reloaded.get_setting("mysql.password").startswith("enc:")
    assert reloaded.get_credentials() == (None, "hunter2")


def test_log_dir_default(tmp_path):
    assert ConfigManager(tmp_path).get_log_dir() == tmp_path / "logs"


def test_password_from_another_key_raises_credentials_error(tmp_path):
    other = ConfigManager(tmp_path / "other")
    write_settings(tmp_path / "cfg", {"mysql": {"password": f"enc:{other.encrypt_value('s3cret')}"}})

    config = ConfigManager(tmp_path / "cfg")

    with pytest.raises(CredentialsError):
        config.get_credentials()
