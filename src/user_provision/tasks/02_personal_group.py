"""
Personal Group Task

Creates the user's private group, named after the user. useradd is
then pointed at it with -g, so this must run before the account task.
"""

from user_provision.runner import TaskFailed, run_command

TASK_NAME = "Personal group"
TASK_DESCRIPTION = "Create the user's private group"


def run(record: dict, console, config: dict, audit, **kwargs) -> dict:
    username = record["username"]

    result = run_command(["groupadd", username], config)
    if result.returncode != 0:
        raise TaskFailed(f"Failed to create group '{username}'.", result.stderr.strip())

    audit.log(f"Created group '{username}'.", "green")
    return {"changed": True}
