"""Best-effort firewalld configuration for kcipasetup."""

from typing import Callable

from kcipasetup.errors import SetupError
from kcipasetup.errors_catalog import actionable_error
from kcipasetup.models import StepOutcome, StepResult

STEP_NAME = "firewall"


class FirewallService:
    """Opens the Keycloak HTTP port in firewalld; never fails the run."""

    def __init__(self, logger, console, run_cmd: Callable):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd

    def open_port(self, port: int) -> StepResult:
        self.logger.info("Configuring firewall...")
        port_spec = f"{port}/tcp"

        try:
            active = self.run_cmd(
                ["systemctl", "is-active", "--quiet", "firewalld"],
                check=False,
                capture_output=True,
            )
            if active.returncode != 0:
                message = "firewalld is not running, skipping firewall configuration"
                self.logger.warning(message)
                return StepResult(STEP_NAME, StepOutcome.DEGRADED, message)

            query = self.run_cmd(
                ["firewall-cmd", f"--query-port={port_spec}"],
                check=False,
                capture_output=True,
            )
            if query.returncode == 0:
                message = f"Port {port_spec} is already open in firewall"
                self.console.print(f"[green]{message}[/green]")
                return StepResult(STEP_NAME, StepOutcome.SUCCEEDED, message)

            self.logger.info("Opening port %s in firewall...", port_spec)
            self.run_cmd(
                ["firewall-cmd", "--permanent", f"--add-port={port_spec}"],
                capture_output=True,
            )
            self.run_cmd(["firewall-cmd", "--reload"], capture_output=True)
        except SetupError as exc:
            message = actionable_error("firewall_failed", port=str(port))
            self.logger.warning("%s (%s)", message, exc)
            return StepResult(STEP_NAME, StepOutcome.DEGRADED, message)

        message = f"Port {port_spec} opened in firewall"
        self.console.print(f"[green]{message}[/green]")
        return StepResult(STEP_NAME, StepOutcome.SUCCEEDED, message)
