"""Invocation of the XtraBackup apply-log tool"""

import logging
import os
import shlex
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .errors import ApplyToolError

DEFAULT_BINARY = "innobackupex"
APPLY_TIMEOUT = 4 * 3600  # 4 hours per apply step
EXIT_COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class ApplyOptions:
    """Options for a single apply-log invocation"""

    redo_only: bool = False
    incremental_dir: Path | None = None
    user: str | None = None
    password: str | None = None


class Applier(Protocol):
    """Runs one apply-log step against a staged directory"""

    def apply(self, directory: Path, options: ApplyOptions) -> None: ...


class XtrabackupApplier:
    """Runs ``innobackupex --apply-log`` and raises ApplyToolError on failure"""

    def __init__(self, binary: str = DEFAULT_BINARY, timeout: int | None = APPLY_TIMEOUT):
        self.binary = binary
        self.timeout = timeout
        self.logger = logging.getLogger("XtrabackupApplier")

    def build_command(self, directory: Path, options: ApplyOptions, defaults_file: str | None = None) -> list[str]:
        """Build the argument list for one apply step"""
        cmd = [self.binary]
        # --defaults-extra-file must be the first option
        if defaults_file:
            cmd.append(f"--defaults-extra-file={defaults_file}")
        cmd.append("--apply-log")
        if options.redo_only:
            cmd.append("--redo-only")
        cmd.append(str(directory))
        if options.incremental_dir is not None:
            cmd.append(f"--incremental-dir={options.incremental_dir}")
        return cmd

    def apply(self, directory: Path, options: ApplyOptions) -> None:
        defaults_file = None
        try:
            if options.user or options.password:
                defaults_file = self._create_credentials_file(options.user, options.password)

            cmd = self.build_command(directory, options, defaults_file)
            cmd_text = shlex.join(cmd)
            self.logger.info(f"Executing {cmd_text}")

            try:
                result = subprocess.run(
                    cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, timeout=self.timeout
                )
            except subprocess.TimeoutExpired as e:
                output = e.output if isinstance(e.output, str) else (e.output or b"").decode(errors="replace")
                self.logger.debug(f"{self.binary} output before timeout: {output}")
                raise ApplyToolError(None, output, cmd_text) from e
            except FileNotFoundError as e:
                raise ApplyToolError(EXIT_COMMAND_NOT_FOUND, str(e), cmd_text) from e

            if result.returncode != 0:
                self.logger.debug(f"{self.binary} output: {result.stdout}")
                raise ApplyToolError(result.returncode, result.stdout, cmd_text)

        finally:
            # Always clean up the temporary credentials file
            if defaults_file and os.path.exists(defaults_file):
                try:
                    os.remove(defaults_file)
                except OSError as e:
                    self.logger.warning(f"Failed to remove temporary credentials file: {e}")

    def _create_credentials_file(self, user: str | None, password: str | None) -> str:
        """Write credentials to a private option file so they stay off the process list"""
        fd, temp_path = tempfile.mkstemp(suffix=".cnf", text=True)

        try:
            os.chmod(temp_path, 0o600)

            lines = ["[client]"]
            if user:
                lines.append(f"user={user}")
            if password:
                # Quoted so characters like # are not read as comments
                escaped = password.replace("\\", "\\\\").replace('"', '\\"')
                lines.append(f'password="{escaped}"')
            os.write(fd, ("\n".join(lines) + "\n").encode("utf-8"))
            return temp_path

        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

        finally:
            os.close(fd)
