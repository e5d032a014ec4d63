"""
Append-only audit log and credential file.

Both files are opened per write so that a crash mid-run never loses
lines already written. The audit log is world-readable (0644); the
credential file holds plaintext passwords and is owner-only (0600).
"""

import os
from datetime import datetime
from pathlib import Path

from rich.markup import escape

LOG_MODE = 0o644
CREDENTIAL_MODE = 0o600
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def prepare_file(path: str, mode: int) -> Path:
    """Create the file (and its parent directory) if missing and set its mode."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.touch(mode=mode, exist_ok=True)
    os.chmod(file_path, mode)
    return file_path


class AuditLog:
    """Timestamped audit log mirrored to the console."""

    def __init__(self, path: str, console):
        self.path = Path(path)
        self.console = console

    def prepare(self):
        prepare_file(str(self.path), LOG_MODE)

    def log(self, message: str, style: str = ""):
        timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
        with open(self.path, "a") as f:
            f.write(f"{timestamp} - {message}\n")

        if style:
            self.console.print(f"    [{style}]{escape(message)}[/]", highlight=False)
        else:
            self.console.print(f"    {escape(message)}", highlight=False)


class CredentialStore:
    """Credential file with one `username,password` line per account."""

    def __init__(self, path: str):
        self.path = Path(path)

    def prepare(self):
        prepare_file(str(self.path), CREDENTIAL_MODE)

    def append(self, username: str, password: str):
        with open(self.path, "a") as f:
            f.write(f"{username},{password}\n")
