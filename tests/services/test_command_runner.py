import sys

import pytest

from kcipasetup.errors import SetupError
from kcipasetup.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(SetupError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
            capture_output=True,
        )


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(3)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 3


def test_command_runner_reports_missing_tool():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(SetupError, match="Required command not found: kcipa-no-such-tool"):
        runner.run(["kcipa-no-such-tool", "--version"], capture_output=True)


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(SetupError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )


def test_is_available_uses_path_lookup():
    runner = CommandRunner(logger=DummyLogger())

    assert runner.is_available("kcipa-no-such-tool") is False
