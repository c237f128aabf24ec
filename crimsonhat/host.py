"""Everything that touches the host: external commands, files, sysfs.

Steps never call ``subprocess`` directly; they go through :class:`Host` so the
whole checklist can run against a fake host in tests.
"""

import logging
import os
import platform
import shutil
import subprocess
import time
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from crimsonhat.errors import CommandError, NonFatalError
from crimsonhat.ui import NordColors

logger = logging.getLogger(__name__)


class Host:
    def __init__(self, console: Console) -> None:
        self.console = console

    # ----------------------------------------------------------------
    # Command execution
    # ----------------------------------------------------------------
    def run(
        self,
        cmd: Sequence[str],
        sudo: bool = False,
        quiet: bool = False,
        check: bool = True,
        input_text: Optional[str] = None,
        description: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        """Run a command to completion.

        ``quiet`` captures the output and shows a spinner instead. Commands
        that need input or stream progress (``dnf upgrade``) run with the
        terminal attached. There is no timeout.
        """
        argv = (["sudo"] if sudo else []) + list(cmd)
        cmd_str = " ".join(argv)
        logger.debug(f"Running command: {cmd_str}")
        capture = quiet or input_text is not None
        try:
            if quiet and description:
                with Progress(
                    SpinnerColumn("dots", style=f"bold {NordColors.FROST_1}"),
                    TextColumn(f"[{NordColors.FROST_2}]{{task.description}}"),
                    console=self.console,
                    transient=True,
                ) as progress:
                    progress.add_task(description, total=None)
                    result = subprocess.run(
                        argv, input=input_text, capture_output=capture, text=True
                    )
            else:
                result = subprocess.run(
                    argv, input=input_text, capture_output=capture, text=True
                )
        except FileNotFoundError as e:
            logger.debug(f"Command not found: {argv[0]}")
            raise CommandError(argv) from e

        if capture:
            if result.stdout and result.stdout.strip():
                logger.debug(f"Cmd stdout: {result.stdout.strip()}")
            if result.stderr and result.stderr.strip():
                logger.debug(f"Cmd stderr: {result.stderr.strip()}")
        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr or "")
        return result

    def command_exists(self, name: str) -> bool:
        exists = shutil.which(name)
        logger.debug(f"Command '{name}' found: {bool(exists)}")
        return bool(exists)

    def succeeds(self, cmd: Sequence[str], sudo: bool = False) -> bool:
        try:
            return self.run(cmd, sudo=sudo, quiet=True, check=False).returncode == 0
        except CommandError:
            return False

    # ----------------------------------------------------------------
    # Privileges
    # ----------------------------------------------------------------
    def is_root(self) -> bool:
        return os.geteuid() == 0

    def validate_sudo(self) -> bool:
        try:
            # Attached to the terminal so sudo can ask for the password.
            return self.run(["sudo", "-v"], check=False).returncode == 0
        except CommandError:
            return False

    # ----------------------------------------------------------------
    # Packages
    # ----------------------------------------------------------------
    def rpm_installed(self, package: str) -> bool:
        return self.succeeds(["rpm", "-q", package])

    def dnf(
        self,
        args: Sequence[str],
        quiet: bool = True,
        description: Optional[str] = None,
    ) -> None:
        self.run(["dnf", *args], sudo=True, quiet=quiet, description=description)

    def fedora_release(self) -> str:
        result = self.run(["rpm", "-E", "%fedora"], quiet=True)
        return result.stdout.strip()

    def kernel_release(self) -> str:
        return platform.release()

    # ----------------------------------------------------------------
    # Files
    # ----------------------------------------------------------------
    def read_text(self, path: str) -> Optional[str]:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def append_line(self, path: str, line: str) -> None:
        """Append one line to a root-owned file via ``sudo tee -a``."""
        current = self.read_text(path) or ""
        prefix = "\n" if current and not current.endswith("\n") else ""
        self.run(["tee", "-a", path], sudo=True, quiet=True, input_text=f"{prefix}{line}\n")

    def write_text(self, path: str, text: str) -> None:
        self.run(["tee", path], sudo=True, quiet=True, input_text=text)

    def backup_file(self, path: str) -> str:
        backup_path = f"{path}.backup.{int(time.time())}"
        try:
            self.run(["cp", path, backup_path], sudo=True, quiet=True)
        except CommandError as e:
            raise NonFatalError(f"Could not back up {path}: {e}") from e
        return backup_path

    # ----------------------------------------------------------------
    # Hardware and kernel
    # ----------------------------------------------------------------
    def pci_devices(self) -> str:
        return self.run(["lspci"], quiet=True).stdout

    def block_devices(self) -> str:
        return self.run(["lsblk", "-d", "-o", "name,rota"], quiet=True).stdout

    def reload_sysctl(self) -> None:
        self.run(["sysctl", "-p"], sudo=True, quiet=True)

    def reboot_required(self) -> Optional[bool]:
        """``needs-restarting -r``: 1 means reboot needed, 0 means not."""
        try:
            code = self.run(["needs-restarting", "-r"], quiet=True, check=False).returncode
        except CommandError:
            return None
        if code == 0:
            return False
        if code == 1:
            return True
        return None

    # ----------------------------------------------------------------
    # Desktop session
    # ----------------------------------------------------------------
    def process_running(self, name: str) -> bool:
        return self.succeeds(["pgrep", "-x", name])

    def gsettings_get(self, schema: str, key: str) -> Optional[str]:
        try:
            result = self.run(["gsettings", "get", schema, key], quiet=True)
        except CommandError:
            return None
        return result.stdout.strip()

    def gsettings_set(self, schema: str, key: str, value: str) -> None:
        self.run(["gsettings", "set", schema, key, value], quiet=True)

    def desktop_name(self) -> str:
        return os.environ.get("XDG_CURRENT_DESKTOP") or "Unknown"

