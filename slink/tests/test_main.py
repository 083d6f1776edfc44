from unittest import mock
import logging
import signal

import pytest

import slink.constants as constants
from slink.__main__ import main
from slink.logger import log
from slink.operations import CommandOperation, Direction, SyncOperation


def exit_code_of(arguments):
    with pytest.raises(SystemExit) as e:
        main(arguments)

    return e.value.code


@pytest.fixture
def project(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / "project").mkdir(parents=True)

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home / "project")
    monkeypatch.setenv("PWD", str(home / "project"))

    return home / "project"


def test_no_args():
    with pytest.raises(SystemExit):
        main([])


def test_use_and_current(capsys):
    assert exit_code_of(["use", "user@devbox"]) == 0
    assert exit_code_of(["current"]) == 0

    assert capsys.readouterr().out == "user@devbox\n"


def test_current_without_host(caplog):
    assert exit_code_of(["current"]) == constants.NO_HOST_SELECTED_CODE
    assert "no remote host selected" in caplog.text


def test_debug_flag_set():
    with mock.patch("slink.operations.SessionRunner"):
        with pytest.raises(SystemExit):
            main(["--debug", "go"])

        assert log.getEffectiveLevel() == logging.DEBUG


def test_debug_flag_not_set():
    with mock.patch("slink.operations.SessionRunner"):
        with pytest.raises(SystemExit):
            main(["go"])

        assert log.getEffectiveLevel() == logging.ERROR


def test_run_operation():
    with mock.patch("slink.operations.SessionRunner") as mock_runner:
        mock_runner().run.return_value = 0

        assert exit_code_of(["run", "make", "test"]) == 0

        operation = mock_runner().run.call_args.args[0]

    assert isinstance(operation, CommandOperation)
    assert operation.command == "make test"


def test_sync_operation(tmp_path):
    config_path = tmp_path / "slink.ini"
    config_path.write_text("[sync]\noptions = --exclude .git\n")

    with mock.patch("slink.operations.SessionRunner") as mock_runner:
        mock_runner().run.return_value = 0

        exit_code_of([f"--config={config_path}", "sync", "down"])

        operation = mock_runner().run.call_args.args[0]

    assert isinstance(operation, SyncOperation)
    assert operation.direction == Direction.DOWN


def test_command_failure(caplog):
    with mock.patch("slink.operations.SessionRunner") as mock_runner:
        mock_runner().run.side_effect = Exception("foo")

        assert exit_code_of(["go"]) == constants.SLINK_ERROR_CODE

    assert "failed to run command: foo" in caplog.text


def test_keyboard_interrupt():
    with mock.patch("slink.operations.SessionRunner") as mock_runner:
        mock_runner().run.side_effect = KeyboardInterrupt()

        assert exit_code_of(["go"]) == 128 + signal.SIGINT


def test_run_without_host(project, fake_tools, caplog):
    assert exit_code_of(["run", "ls"]) == constants.NO_HOST_SELECTED_CODE
    assert "slink use" in caplog.text


def test_remote_exit_code_propagated(project, fake_tools):
    exit_code_of(["use", "devbox"])

    assert exit_code_of(["run", "exit 7"]) == 7


def test_remote_success(project, fake_tools, capfd):
    (fake_tools.remote_home / "project").mkdir()
    exit_code_of(["use", "devbox"])

    assert exit_code_of(["run", "pwd"]) == 0
    assert capfd.readouterr().out.strip() == str(fake_tools.remote_home / "project")


def test_connection_error(project, fake_tools, caplog):
    fake_tools.unreachable("nowhere")
    exit_code_of(["use", "nowhere"])

    assert exit_code_of(["go"]) == constants.CONNECTION_ERROR_CODE
    assert "Could not resolve hostname nowhere" in caplog.text
    assert len(fake_tools.master_spawns()) == 1


def test_sync_failure(project, fake_tools, caplog):
    fake_tools.exit_code("rsync", 23)
    exit_code_of(["use", "devbox"])

    assert exit_code_of(["sync", "up"]) == 23
    assert "rsync failed with status 23" in caplog.text
