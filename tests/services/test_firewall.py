import subprocess

from kcipasetup.errors import SetupError
from kcipasetup.models import StepOutcome
from kcipasetup.services.firewall import FirewallService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class ScriptedRunner:
    def __init__(self, active=True, already_open=False, add_fails=False):
        self.active = active
        self.already_open = already_open
        self.add_fails = add_fails
        self.commands = []

    def __call__(self, cmd, check=True, capture_output=False):
        self.commands.append(cmd)
        code = 0
        if cmd[0] == "systemctl":
            code = 0 if self.active else 3
        elif any(arg.startswith("--query-port") for arg in cmd):
            code = 0 if self.already_open else 1
        elif "--permanent" in cmd and self.add_fails:
            raise SetupError("Command failed (1): firewall-cmd --permanent")
        return subprocess.CompletedProcess(cmd, code, stdout="", stderr="")


def _service(runner):
    return FirewallService(logger=DummyLogger(), console=DummyConsole(), run_cmd=runner)


def test_opens_port_and_reloads():
    runner = ScriptedRunner()

    result = _service(runner).open_port(8080)

    assert result.outcome is StepOutcome.SUCCEEDED
    assert ["firewall-cmd", "--permanent", "--add-port=8080/tcp"] in runner.commands
    assert runner.commands[-1] == ["firewall-cmd", "--reload"]


def test_already_open_port_is_left_alone():
    runner = ScriptedRunner(already_open=True)

    result = _service(runner).open_port(28080)

    assert result.outcome is StepOutcome.SUCCEEDED
    assert not any("--permanent" in cmd for cmd in runner.commands)


def test_inactive_firewalld_degrades():
    result = _service(ScriptedRunner(active=False)).open_port(8080)

    assert result.outcome is StepOutcome.DEGRADED
    assert "not running" in result.message


def test_failed_rule_degrades_with_manual_command():
    result = _service(ScriptedRunner(add_fails=True)).open_port(8080)

    assert result.outcome is StepOutcome.DEGRADED
    assert "firewall-cmd --permanent --add-port=8080/tcp" in result.message


def test_missing_systemctl_degrades():
    def missing(cmd, check=True, capture_output=False):
        raise SetupError(f"Required command not found: {cmd[0]}.")

    assert _service(missing).open_port(8080).outcome is StepOutcome.DEGRADED
