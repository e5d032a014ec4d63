"""
Command execution for the provisioning tasks.

All account changes go through the standard shadow-utils binaries
(groupadd, useradd, usermod, chpasswd, ...). Commands are judged by
their return code; a non-zero exit never raises here. Tasks decide
whether a failure aborts the record by raising TaskFailed.
"""

import subprocess


class TaskFailed(Exception):
    """A provisioning step failed; the remaining steps of the record are skipped."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail


def run_command(args: list, config: dict, input: str | None = None) -> subprocess.CompletedProcess:
    """Execute a system command, prefixed with sudo when configured."""
    cmd = (["sudo"] if config.get("sudo") else []) + args
    return subprocess.run(
        cmd,
        input=input,
        capture_output=True,
        text=True,
    )


def user_exists(username: str, config: dict) -> bool:
    return run_command(["id", username], config).returncode == 0


def group_exists(name: str, config: dict) -> bool:
    return run_command(["getent", "group", name], config).returncode == 0


def home_dir(username: str, config: dict) -> str:
    return f"{config['home_base'].rstrip('/')}/{username}"
