#!/usr/bin/env python3
"""
User Provision - Bulk Unix Account Creation

Reads a semicolon-delimited input file and creates one system account
per line using the standard account utilities (groupadd, useradd,
usermod, chpasswd). Existing accounts are skipped, so the same input
file can be applied again safely.

Input format (one account per line):
  username;group1,group2,...

Every step is appended to the audit log; each generated password is
appended to the credential file as `username,password`.

Configuration (environment variables):
  USER_PROVISION_LOG_FILE        audit log (default /var/log/user_management.log)
  USER_PROVISION_PASSWORD_FILE   credential file (default /var/secure/user_passwords.txt)
  USER_PROVISION_SHELL           login shell (default /bin/bash)
  USER_PROVISION_HOME_BASE       parent of home directories (default /home)
  USER_PROVISION_PASSWORD_BYTES  random bytes per password (default 12)
  USER_PROVISION_SUDO            auto | 1 | 0 (default auto: sudo unless root)
"""

import argparse
import os
import sys
from importlib import import_module
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from user_provision.audit import AuditLog, CredentialStore
from user_provision.runner import TaskFailed

console = Console()

DEFAULT_LOG_FILE = "/var/log/user_management.log"
DEFAULT_PASSWORD_FILE = "/var/secure/user_passwords.txt"

SUDO_MODES = {
    "auto": None,
    "1": True, "true": True, "yes": True,
    "0": False, "false": False, "no": False,
}


def get_provision_config() -> dict:
    """Get provisioning configuration from environment variables."""
    password_bytes = os.environ.get("USER_PROVISION_PASSWORD_BYTES", "12")
    try:
        password_bytes = int(password_bytes)
    except ValueError:
        raise ValueError(f"USER_PROVISION_PASSWORD_BYTES must be an integer, got '{password_bytes}'") from None
    if password_bytes <= 0:
        raise ValueError("USER_PROVISION_PASSWORD_BYTES must be positive")

    sudo_mode = os.environ.get("USER_PROVISION_SUDO", "auto").strip().lower()
    if sudo_mode not in SUDO_MODES:
        raise ValueError(f"USER_PROVISION_SUDO must be one of auto, 1, 0 (got '{sudo_mode}')")
    sudo = SUDO_MODES[sudo_mode]
    if sudo is None:
        sudo = os.geteuid() != 0

    return {
        "log_file": os.environ.get("USER_PROVISION_LOG_FILE", DEFAULT_LOG_FILE),
        "password_file": os.environ.get("USER_PROVISION_PASSWORD_FILE", DEFAULT_PASSWORD_FILE),
        "shell": os.environ.get("USER_PROVISION_SHELL", "/bin/bash"),
        "home_base": os.environ.get("USER_PROVISION_HOME_BASE", "/home"),
        "password_bytes": password_bytes,
        "sudo": sudo,
    }


def parse_line(line: str, lineno: int) -> dict | None:
    """Parse one `username;group1,group2` input line.

    Returns None for blank and comment lines.

    Raises:
        ValueError: The line has no username.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    username, _, group_field = stripped.partition(";")
    username = username.strip()
    if not username:
        raise ValueError(f"Skipping malformed line {lineno}.")

    groups = []
    for name in group_field.split(","):
        name = name.strip()
        if name and name not in groups:
            groups.append(name)

    return {"username": username, "groups": groups, "line": lineno}


def read_records(lines):
    """Yield (lineno, record_or_error) for every non-ignored input line.

    Lines may be bytes; a line that is not valid UTF-8 is malformed.
    """
    for lineno, line in enumerate(lines, start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError:
                yield lineno, ValueError(f"Skipping malformed line {lineno}.")
                continue
        try:
            record = parse_line(line, lineno)
        except ValueError as e:
            yield lineno, e
            continue
        if record is not None:
            yield lineno, record


def discover_tasks() -> list:
    """Discover the provisioning steps from the tasks/ directory.

    Raises:
        ImportError: A task module could not be loaded.
    """
    tasks_dir = Path(__file__).parent / "tasks"
    tasks = []

    for task_file in sorted(tasks_dir.glob("*.py")):
        if task_file.name.startswith("_"):
            continue

        module_name = f"{__package__}.tasks.{task_file.stem}"
        try:
            module = import_module(module_name)
            if hasattr(module, "run"):
                tasks.append({
                    "name": getattr(module, "TASK_NAME", task_file.stem),
                    "description": getattr(module, "TASK_DESCRIPTION", ""),
                    "module": module,
                })
        except Exception as e:
            raise ImportError(f"Failed to load task {task_file.name}: {e}") from e

    return tasks


def process_record(record: dict, tasks: list, config: dict, audit: AuditLog,
                   credentials: CredentialStore) -> str:
    """Run every step for one record.

    Returns:
        "created", "skipped" or "failed".
    """
    username = record["username"]
    console.print(f"[bold]> {escape(username)}[/]", highlight=False)

    for task in tasks:
        try:
            result = task["module"].run(
                record, console,
                config=config, audit=audit, credentials=credentials,
            )
        except TaskFailed as e:
            audit.log(e.message, "red")
            if e.detail:
                console.print(f"      [dim]{escape(e.detail)}[/]", highlight=False)
            return "failed"
        except Exception as e:
            audit.log(f"{task['name']} step failed for user '{username}': {e}", "red")
            return "failed"

        if result.get("stop"):
            return "skipped"
        if result.get("message"):
            console.print(f"    [dim]{task['name']}: {escape(result['message'])}[/]", highlight=False)

    return "created"


def main(argv: list | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="user-provision",
        description="Create Unix user accounts from a 'username;group1,group2' file.",
    )
    parser.add_argument("input_file", help="semicolon-delimited input file")
    args = parser.parse_args(argv)

    console.print(Panel.fit(
        "[bold blue]User Provision[/]\n"
        "[dim]Bulk Unix Account Creation[/]",
        border_style="blue",
    ))
    console.print()

    try:
        config = get_provision_config()
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        return 1

    # Prepare log and credential files
    audit = AuditLog(config["log_file"], console)
    credentials = CredentialStore(config["password_file"])
    try:
        audit.prepare()
        credentials.prepare()
    except OSError as e:
        console.print(f"[red]Error: Cannot prepare output files: {escape(str(e))}[/]")
        return 1

    console.print(f"[dim]Audit log: {escape(config['log_file'])}[/]")
    console.print(f"[dim]Credentials: {escape(config['password_file'])}[/]")
    console.print()

    try:
        tasks = discover_tasks()
    except ImportError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        return 1
    if not tasks:
        console.print("[yellow]No provisioning tasks found[/]")
        return 0

    try:
        input_file = open(args.input_file, "rb")
    except OSError as e:
        console.print(f"[red]Error: Cannot read input file: {escape(str(e))}[/]")
        return 1

    created = 0
    skipped = 0
    failed = 0

    with input_file:
        for _, record in read_records(input_file):
            if isinstance(record, ValueError):
                audit.log(str(record), "red")
                failed += 1
                continue

            outcome = process_record(record, tasks, config, audit, credentials)
            if outcome == "created":
                created += 1
            elif outcome == "skipped":
                skipped += 1
            else:
                failed += 1
            console.print()

    audit.log("User creation process completed.")

    # Summary
    console.print("─" * 50)
    console.print(
        f"User creation process completed. Check {escape(config['log_file'])} for details.",
        highlight=False,
    )

    if failed == 0:
        console.print(f"[green]Provisioning complete ({created} created, {skipped} skipped, {failed} failed)[/]")
        return 0
    else:
        console.print(
            f"[red]Provisioning had errors "
            f"({created} created, {skipped} skipped, {failed} failed)[/]"
        )
        return 1


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
