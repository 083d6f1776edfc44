"""Module with fixtures that replace ssh, rsync, scp and sudo with fakes."""

import json
import os
import stat
import sys

import pytest

from slink.config import Config

# Fake ssh that treats the local machine as the remote. It understands just enough of
# the options used by slink to emulate control masters and unreachable hosts.
FAKE_SSH = """
import json, os, subprocess, sys, time

argv = sys.argv[1:]

with open(os.environ["FAKE_TOOLS_LOG"], "a") as f:
    f.write(json.dumps(["ssh"] + argv) + "\\n")

options = {}
control_command = None
rest = []

i = 0
while i < len(argv):
    arg = argv[i]
    if arg in ("-o", "-O", "-L", "-p", "-i", "-F"):
        if arg == "-o":
            key, _, value = argv[i + 1].partition("=")
            options[key] = value
        elif arg == "-O":
            control_command = argv[i + 1]
        i += 2
    elif arg.startswith("-"):
        i += 1
    else:
        rest = argv[i:]
        break

host, remote = rest[0], rest[1:]
control_path = options.get("ControlPath")

if host in os.environ.get("FAKE_SSH_UNREACHABLE", "").split():
    sys.stderr.write(f"ssh: Could not resolve hostname {host}\\n")
    sys.exit(255)

if control_command == "check":
    try:
        with open(control_path) as f:
            sys.exit(0 if f.read() == "alive" else 255)
    except FileNotFoundError:
        sys.exit(255)

if options.get("ControlMaster") == "yes":
    if os.path.exists(control_path):
        sys.stderr.write(f"ControlSocket {control_path} already exists\\n")
        sys.exit(255)

    time.sleep(float(os.environ.get("FAKE_SSH_DELAY", "0")))

    with open(control_path, "w") as f:
        f.write("alive")

    sys.exit(0)

if not remote:
    sys.exit(0)

# Output of the remote shell startup files
if os.environ.get("FAKE_SSH_BANNER"):
    sys.stdout.write(os.environ["FAKE_SSH_BANNER"] + "\\n")
    sys.stdout.flush()

env = dict(os.environ, HOME=os.environ["FAKE_REMOTE_HOME"], SHELL="true")
sys.exit(subprocess.call(["sh", "-c", " ".join(remote)], env=env))
"""

# Fake tool that logs its arguments and exits with a configurable exit code.
FAKE_TOOL = """
import json, os, signal, sys

name = os.path.basename(sys.argv[0])

with open(os.environ["FAKE_TOOLS_LOG"], "a") as f:
    f.write(json.dumps([name] + sys.argv[1:]) + "\\n")

# Emulates Ctrl-C in the terminal, which also reaches slink itself
if os.environ.get(f"FAKE_{name.upper()}_INTERRUPT"):
    os.kill(os.getppid(), signal.SIGINT)

sys.exit(int(os.environ.get(f"FAKE_{name.upper()}_EXIT", "0")))
"""


class FakeTools:
    """Fake external tools installed on the PATH, with access to their invocations."""

    def __init__(self, base_path, monkeypatch):
        self.bin_path = base_path / "bin"
        self.log_path = base_path / "tools.log"
        self.remote_home = base_path / "remote_home"

        self.bin_path.mkdir()
        self.remote_home.mkdir()

        self._install("ssh", FAKE_SSH)

        for name in ("rsync", "scp", "sudo"):
            self._install(name, FAKE_TOOL)

        monkeypatch.setenv("PATH", f"{self.bin_path}{os.pathsep}{os.environ['PATH']}")
        monkeypatch.setenv("FAKE_TOOLS_LOG", str(self.log_path))
        monkeypatch.setenv("FAKE_REMOTE_HOME", str(self.remote_home))

        self._monkeypatch = monkeypatch

    def _install(self, name, source):
        path = self.bin_path / name
        path.write_text(f"#!{sys.executable}\n{source}")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def unreachable(self, host):
        """Make ssh fail to connect to the given host."""
        self._monkeypatch.setenv("FAKE_SSH_UNREACHABLE", host)

    def exit_code(self, name, code):
        """Make the fake tool exit with the given code."""
        self._monkeypatch.setenv(f"FAKE_{name.upper()}_EXIT", str(code))

    def banner(self, text):
        """Make the remote shell print the given text before running commands."""
        self._monkeypatch.setenv("FAKE_SSH_BANNER", text)

    def interrupt(self, name):
        """Make the fake tool send SIGINT to slink before it exits."""
        self._monkeypatch.setenv(f"FAKE_{name.upper()}_INTERRUPT", "1")

    def calls(self, name=None):
        """Return the argument lists of all invocations, optionally of a single tool."""
        if not self.log_path.exists():
            return []

        with open(self.log_path) as f:
            calls = [json.loads(line) for line in f]

        return [call for call in calls if name is None or call[0] == name]

    def master_spawns(self):
        """Return the ssh invocations that started a control master."""
        return [call for call in self.calls("ssh") if "ControlMaster=yes" in call]

    def remote_commands(self):
        """Return the commands that were run on the (fake) remote."""
        commands = []

        for call in self.calls("ssh"):
            if "-O" in call or "ControlMaster=yes" in call or "-N" in call:
                continue

            commands.append(call[-1])

        return commands


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep config and control sockets of tests out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg_config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg_cache"))


@pytest.fixture
def fake_tools(tmp_path, monkeypatch):
    return FakeTools(tmp_path, monkeypatch)


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.ssh.control_dir = str(tmp_path / "control")
    cfg.host_file = str(tmp_path / "config" / "hostname")
    return cfg
