"""Configuration Manager for Xtraprep"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from cryptography.fernet import Fernet, InvalidToken

from .applier import APPLY_TIMEOUT, DEFAULT_BINARY
from .backups import CHECKPOINTS_FILE, FULL_DIR, INCREMENTAL_DIR
from .errors import CredentialsError

DEFAULT_CONFIG_DIR = Path.home() / ".xtraprep"
ENCRYPTED_PREFIX = "enc:"


class ConfigManager:
    """Loads settings.yaml and keeps the stored MySQL password encrypted"""

    def __init__(self, config_dir: str | Path | None = None):
        self.config_dir = Path(config_dir or DEFAULT_CONFIG_DIR)
        self.settings_file = self.config_dir / "settings.yaml"
        self.key_file = self.config_dir / ".encryption_key"
        self.logger = logging.getLogger("ConfigManager")
        self._cipher: Fernet | None = None

        if not self.settings_file.exists():
            self.logger.debug(f"No settings file at {self.settings_file}, using defaults")

        self.settings = self._load_yaml(self.settings_file)

        # Encrypt a plain-text password on first run
        self._encrypt_passwords()

    @property
    def cipher(self) -> Fernet:
        if self._cipher is None:
            self._cipher = self._init_encryption()
        return self._cipher

    def _init_encryption(self) -> Fernet:
        """Load the encryption key, creating it on first use"""
        if self.key_file.exists():
            # Ensure correct permissions on existing key file
            current_mode = os.stat(self.key_file).st_mode & 0o777
            if current_mode != 0o600:
                os.chmod(self.key_file, 0o600)
            with open(self.key_file, "rb") as f:
                return Fernet(f.read())

        # Generate new key with restricted permissions from creation
        self.config_dir.mkdir(parents=True, exist_ok=True)
        key = Fernet.generate_key()
        fd = os.open(str(self.key_file), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, key)
        finally:
            os.close(fd)
        return Fernet(key)

    def _load_yaml(self, file_path: Path) -> dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        with open(file_path) as f:
            return yaml.safe_load(f) or {}

    def _save_yaml(self, data: dict[str, Any], file_path: Path) -> None:
        """Save configuration to YAML file"""
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def _encrypt_passwords(self) -> None:
        """Encrypt mysql.password if not already encrypted"""
        mysql = self.settings.get("mysql") or {}
        password = mysql.get("password")

        if password and not str(password).startswith(ENCRYPTED_PREFIX):
            mysql["password"] = f"{ENCRYPTED_PREFIX}{self.encrypt_value(str(password))}"
            self.settings["mysql"] = mysql
            self._save_yaml(self.settings, self.settings_file)

    def encrypt_value(self, value: str) -> str:
        """Encrypt a string value"""
        return self.cipher.encrypt(value.encode()).decode()

    def decrypt_value(self, encrypted: str) -> str:
        """Decrypt an encrypted value"""
        if encrypted.startswith(ENCRYPTED_PREFIX):
            encrypted = encrypted[len(ENCRYPTED_PREFIX) :]
        return self.cipher.decrypt(encrypted.encode()).decode()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value with optional default

        Args:
            key: Setting key (supports nested keys with dot notation, e.g., 'timeouts.apply')
            default: Default value if setting not found

        Returns:
            Setting value or default
        """
        keys = key.split(".")
        value: Any = self.settings

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default

    def set_setting(self, key: str, value: Any) -> None:
        """Set a dotted setting and save settings.yaml"""
        *parents, last = key.split(".")
        node = self.settings
        for k in parents:
            child = node.get(k)
            if not isinstance(child, dict):
                child = {}
                node[k] = child
            node = child
        node[last] = value
        self._save_yaml(self.settings, self.settings_file)

    def store_password(self, password: str) -> None:
        """Store the MySQL password encrypted"""
        self.set_setting("mysql.password", f"{ENCRYPTED_PREFIX}{self.encrypt_value(password)}")

    def get_credentials(self) -> tuple[str | None, str | None]:
        """Configured MySQL (user, password), password decrypted"""
        user = self.get_setting("mysql.user")
        password = self.get_setting("mysql.password")
        if password:
            try:
                password = self.decrypt_value(str(password))
            except InvalidToken as e:
                raise CredentialsError(str(self.key_file)) from e
        return user, password

    def get_apply_timeout(self) -> int | None:
        """Seconds allowed per apply step, None or 0 disables the limit"""
        timeout = self.get_setting("timeouts.apply", APPLY_TIMEOUT)
        return int(timeout) or None

    def get_xtrabackup_binary(self) -> str:
        return str(self.get_setting("xtrabackup.binary", DEFAULT_BINARY))

    def get_layout(self) -> dict[str, str]:
        """Backup directory layout below the backup base directory"""
        return {
            "full_dir": str(self.get_setting("layout.full_dir", FULL_DIR)),
            "incremental_dir": str(self.get_setting("layout.incremental_dir", INCREMENTAL_DIR)),
            "checkpoints_file": str(self.get_setting("xtrabackup.checkpoints_file", CHECKPOINTS_FILE)),
        }

    def get_log_dir(self) -> Path:
        return Path(self.get_setting("logging.dir", str(self.config_dir / "logs"))).expanduser()
