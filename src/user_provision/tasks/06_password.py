"""
Password Task

Generates a random password, sets it with chpasswd and appends the
credential pair to the credential file. The credential line is written
only once chpasswd has succeeded.
"""

import base64
import secrets

from user_provision.runner import TaskFailed, run_command

TASK_NAME = "Password"
TASK_DESCRIPTION = "Set a random password and record the credential"


def generate_password(length: int = 12) -> str:
    """Base64 of `length` random bytes, like `openssl rand -base64 12`."""
    return base64.b64encode(secrets.token_bytes(length)).decode("ascii")


def run(record: dict, console, config: dict, audit, credentials, **kwargs) -> dict:
    username = record["username"]
    password = generate_password(config["password_bytes"])

    result = run_command(["chpasswd"], config, input=f"{username}:{password}\n")
    if result.returncode != 0:
        raise TaskFailed(f"Failed to set password for user '{username}'.", result.stderr.strip())

    audit.log(f"Set password for user '{username}'.", "green")
    credentials.append(username, password)
    return {"changed": True}
