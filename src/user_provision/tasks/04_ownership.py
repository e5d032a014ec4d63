"""Hand the home directory (and any skeleton files) to the new user."""

from user_provision.runner import TaskFailed, home_dir, run_command

TASK_NAME = "Home ownership"
TASK_DESCRIPTION = "Set ownership of the home directory"


def run(record: dict, console, config: dict, audit, **kwargs) -> dict:
    username = record["username"]
    home = home_dir(username, config)

    result = run_command(["chown", "-R", f"{username}:{username}", home], config)
    if result.returncode != 0:
        raise TaskFailed(f"Failed to set ownership for {home}.", result.stderr.strip())

    audit.log(f"Set ownership for {home}.", "green")
    return {"changed": True}
