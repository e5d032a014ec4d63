"""
Existing User Check

Stops the record when the account already exists. Provisioning never
modifies an existing user: its groups, home directory and password are
left untouched, and no credential line is written.
"""

from user_provision.runner import user_exists

TASK_NAME = "Existing user"
TASK_DESCRIPTION = "Skip accounts that already exist"


def run(record: dict, console, config: dict, audit, **kwargs) -> dict:
    username = record["username"]

    if user_exists(username, config):
        audit.log(f"User '{username}' already exists. Skipping.", "blue")
        return {"skipped": True, "stop": True, "message": "Already exists"}

    return {}
