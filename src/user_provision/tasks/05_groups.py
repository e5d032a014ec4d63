"""
Secondary Group Membership Task

Adds the user to each group listed after the ';' in the input line.
Groups that do not exist yet are created first.

Input example:
    alice;developers,docker

Notes:
  - A failure to create or join one group is logged and only that group
    is skipped. It never aborts the record, so the password is still set.
  - usermod -aG appends; existing memberships are kept.
"""

from rich.markup import escape

from user_provision.runner import group_exists, run_command

TASK_NAME = "Groups"
TASK_DESCRIPTION = "Create secondary groups and add membership"


def _ensure_group(name: str, config: dict, audit) -> bool:
    if group_exists(name, config):
        return True

    result = run_command(["groupadd", name], config)
    if result.returncode != 0:
        audit.log(f"Failed to create group '{name}'.", "yellow")
        return False

    audit.log(f"Created group '{name}'.", "green")
    return True


def run(record: dict, console, config: dict, audit, **kwargs) -> dict:
    username = record["username"]
    groups = record.get("groups", [])

    if not groups:
        return {"skipped": True, "message": "No secondary groups"}

    added = 0
    for group_name in groups:
        if not _ensure_group(group_name, config, audit):
            continue

        result = run_command(["usermod", "-aG", group_name, username], config)
        if result.returncode != 0:
            audit.log(f"Failed to add user '{username}' to group '{group_name}'.", "yellow")
            if result.stderr.strip():
                console.print(f"      [dim]{escape(result.stderr.strip())}[/]", highlight=False)
            continue

        audit.log(f"Added user '{username}' to group '{group_name}'.", "green")
        added += 1

    return {
        "changed": added > 0,
        "message": f"{len(groups)} group(s) processed ({added} joined)",
    }
