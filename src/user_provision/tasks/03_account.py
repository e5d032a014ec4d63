"""
Account Creation Task

Creates the account with a home directory, the personal group as its
primary group and the configured login shell:

    useradd -m -d <home_base>/<user> -g <user> -s <shell> <user>
"""

from user_provision.runner import TaskFailed, home_dir, run_command

TASK_NAME = "Account"
TASK_DESCRIPTION = "Create the user with home directory"


def run(record: dict, console, config: dict, audit, **kwargs) -> dict:
    username = record["username"]

    result = run_command([
        "useradd",
        "-m",
        "-d", home_dir(username, config),
        "-g", username,
        "-s", config["shell"],
        username,
    ], config)
    if result.returncode != 0:
        raise TaskFailed(f"Failed to create user '{username}'.", result.stderr.strip())

    audit.log(f"Created user '{username}' with home directory and personal group.", "green")
    return {"changed": True}
