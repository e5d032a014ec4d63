"""
Shared fixtures.

The account utilities are replaced by FakeSystem, an in-memory model of
the user and group databases that answers subprocess.run calls the way
id, getent, groupadd, useradd, chown, usermod and chpasswd do.
"""

import io
import subprocess

import pytest
from rich.console import Console

from user_provision.audit import AuditLog, CredentialStore


class FakeSystem:
    """In-memory user/group database driven through subprocess.run."""

    def __init__(self):
        self.users = {}
        self.groups = set()
        self.passwords = {}
        self.owners = {}
        self.calls = []
        self.failures = set()

    def fail_on(self, command: str, target: str):
        """Make `command` fail whenever its last argument is `target`."""
        self.failures.add((command, target))

    def add_user(self, name: str, groups=()):
        self.groups.add(name)
        self.users[name] = {"group": name, "groups": set(groups), "home": f"/home/{name}", "shell": "/bin/sh"}

    def commands(self, name: str) -> list:
        return [call for call in self.calls if call[0] == name]

    def __call__(self, cmd, input=None, capture_output=False, text=False, **kwargs):
        args = list(cmd)
        if args[0] == "sudo":
            args = args[1:]
        self.calls.append(args)

        if (args[0], args[-1]) in self.failures:
            returncode, stderr = 1, f"{args[0]}: simulated failure"
        else:
            handler = getattr(self, f"_{args[0]}")
            returncode, stderr = handler(args[1:], input)

        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)

    def _id(self, args, input):
        if args[0] in self.users:
            return 0, ""
        return 1, f"id: '{args[0]}': no such user"

    def _getent(self, args, input):
        assert args[0] == "group"
        return (0, "") if args[1] in self.groups else (2, "")

    def _groupadd(self, args, input):
        name = args[0]
        if name in self.groups:
            return 9, f"groupadd: group '{name}' already exists"
        self.groups.add(name)
        return 0, ""

    def _useradd(self, args, input):
        name = args[-1]
        flags = [a for a in args[:-1] if a != "-m"]
        options = dict(zip(flags[::2], flags[1::2]))
        if name in self.users:
            return 9, f"useradd: user '{name}' already exists"
        if options.get("-g") not in self.groups:
            return 6, f"useradd: group '{options.get('-g')}' does not exist"
        self.users[name] = {
            "group": options["-g"],
            "groups": set(),
            "home": options.get("-d", f"/home/{name}"),
            "shell": options.get("-s"),
        }
        return 0, ""

    def _chown(self, args, input):
        assert args[0] == "-R"
        owner, path = args[1], args[2]
        user, _, group = owner.partition(":")
        if user not in self.users or group not in self.groups:
            return 1, f"chown: invalid user: '{owner}'"
        self.owners[path] = owner
        return 0, ""

    def _usermod(self, args, input):
        assert args[0] == "-aG"
        group, user = args[1], args[2]
        if group not in self.groups:
            return 6, f"usermod: group '{group}' does not exist"
        self.users[user]["groups"].add(group)
        return 0, ""

    def _chpasswd(self, args, input):
        for line in input.splitlines():
            user, _, password = line.partition(":")
            if user not in self.users:
                return 1, f"chpasswd: line 1: user '{user}' does not exist"
            self.passwords[user] = password
        return 0, ""


@pytest.fixture
def fake_system(monkeypatch):
    system = FakeSystem()
    monkeypatch.setattr(subprocess, "run", system)
    return system


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def config(tmp_path):
    return {
        "log_file": str(tmp_path / "log" / "user_management.log"),
        "password_file": str(tmp_path / "secure" / "user_passwords.txt"),
        "shell": "/bin/bash",
        "home_base": "/home",
        "password_bytes": 12,
        "sudo": False,
    }


@pytest.fixture
def audit(config, console):
    log = AuditLog(config["log_file"], console)
    log.prepare()
    return log


@pytest.fixture
def credentials(config):
    store = CredentialStore(config["password_file"])
    store.prepare()
    return store


@pytest.fixture
def provision_env(monkeypatch, config):
    """Point the CLI at temporary output files and disable sudo."""
    monkeypatch.setenv("USER_PROVISION_LOG_FILE", config["log_file"])
    monkeypatch.setenv("USER_PROVISION_PASSWORD_FILE", config["password_file"])
    monkeypatch.setenv("USER_PROVISION_SUDO", "0")
    return config
