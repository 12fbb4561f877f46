"""Orchestration of the Keycloak with FreeIPA backend setup."""

import logging
import subprocess
from typing import Callable, List, Optional

import requests
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .constants import (
    DEFAULT_WORK_DIR,
    FETCH_TIMEOUT,
    IPA_CA_FILE,
    IPA_CONFIG_FILE,
    KEYCLOAK_IMAGE,
    POSTGRES_IMAGE,
    PROBE_STARTUP_DELAY,
)
from .errors import (
    BuildError,
    ConfigConflict,
    LocalCertificateMissing,
    SetupError,
)
from .errors_catalog import actionable_error
from .models import (
    DeploymentProfile,
    GeneratedArtifacts,
    ImportStatus,
    RunSummary,
    SetupPaths,
    StepOutcome,
    StepResult,
    TrustStore,
)
from .services.artifacts import ArtifactGenerator, read_env_value
from .services.certificate import CertificateSourceResolver
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.firewall import FirewallService
from .services.keytool import KeytoolService
from .services.network import HostResolver
from .services.role_detector import RoleDetector
from .services.truststore import TrustStoreBuilder
from .services.validation import validate_hostname

console = Console()
logger = logging.getLogger("kcipasetup")


def ask_confirmation(prompt: str) -> bool:
    try:
        return Confirm.ask(prompt, default=False, console=console)
    except EOFError:
        # stdin closed or not a terminal
        console.print()
        return False


def ask_text(prompt: str) -> str:
    try:
        return Prompt.ask(prompt, default="", console=console)
    except EOFError:
        console.print()
        return ""


class SetupRuntime:
    """Wires the services shared by the full setup and the truststore-only run."""

    def __init__(
        self,
        work_dir: str = DEFAULT_WORK_DIR,
        image: str = KEYCLOAK_IMAGE,
        install_java: bool = True,
        fetch_timeout: float = FETCH_TIMEOUT,
        startup_delay: float = PROBE_STARTUP_DELAY,
        ipa_ca_file: str = IPA_CA_FILE,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.paths = SetupPaths.from_work_dir(work_dir)
        self.store = TrustStore(path=self.paths.truststore_file)
        self.image = image
        self.confirm = confirm or ask_confirmation

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.certificate_resolver = CertificateSourceResolver(
            logger=logger,
            console=console,
            ca_file=ipa_ca_file,
            requests_module=requests,
            timeout=fetch_timeout,
        )
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            startup_delay=startup_delay,
        )
        self.keytool_service = KeytoolService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            is_available=self.command_runner.is_available,
        )
        self.truststore_builder = TrustStoreBuilder(
            store=self.store,
            keytool=self.keytool_service,
            docker_runtime=self.docker_runtime_service,
            filesystem=self.filesystem_service,
            logger=logger,
            console=console,
            image=image,
            install_java=install_java,
        )

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)


class KeycloakSetup(SetupRuntime):
    """Full run: detect role, import the FreeIPA CA, write .env and docker-compose.yml."""

    def __init__(
        self,
        hostname: str,
        ipa_server: Optional[str] = None,
        work_dir: str = DEFAULT_WORK_DIR,
        image: str = KEYCLOAK_IMAGE,
        postgres_image: str = POSTGRES_IMAGE,
        assume_yes: bool = False,
        open_firewall: bool = True,
        install_java: bool = True,
        fetch_timeout: float = FETCH_TIMEOUT,
        startup_delay: float = PROBE_STARTUP_DELAY,
        ipa_config_file: str = IPA_CONFIG_FILE,
        ipa_ca_file: str = IPA_CA_FILE,
        log_file: Optional[str] = None,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.hostname = validate_hostname(hostname, label="hostname")
        self.ipa_server = validate_hostname(ipa_server, label="IPA server hostname") if ipa_server else None
        self.assume_yes = assume_yes
        self.open_firewall = open_firewall
        self.log_file = log_file

        super().__init__(
            work_dir=work_dir,
            image=image,
            install_java=install_java,
            fetch_timeout=fetch_timeout,
            startup_delay=startup_delay,
            ipa_ca_file=ipa_ca_file,
            confirm=confirm,
        )

        self.steps: List[StepResult] = []
        self.host_resolver = HostResolver(logger=logger)
        self.role_detector = RoleDetector(logger=logger, config_file=ipa_config_file, ca_file=ipa_ca_file)
        self.artifact_generator = ArtifactGenerator(
            paths=self.paths,
            resolver=self.host_resolver,
            filesystem=self.filesystem_service,
            logger=logger,
            console=console,
            image=image,
            postgres_image=postgres_image,
        )
        self.firewall_service = FirewallService(logger=logger, console=console, run_cmd=self._run_cmd)

    def _confirm(self, prompt: str) -> bool:
        if self.assume_yes:
            logger.info("%s [assumed yes]", prompt)
            return True
        return self.confirm(prompt)

    def check_existing_configuration(self):
        if not self.artifact_generator.resolve_conflicts(self._confirm):
            raise ConfigConflict("User chose not to overwrite the existing configuration.")

    def detect_role(self) -> DeploymentProfile:
        return self.role_detector.detect(self.hostname, explicit_server=self.ipa_server)

    def setup_truststore(self, profile: DeploymentProfile) -> StepResult:
        """Import the FreeIPA CA; only a missing local CA or baseline truststore is fatal."""
        try:
            material = self.certificate_resolver.resolve(profile)
            result = self.truststore_builder.ensure_imported(material)
        except (LocalCertificateMissing, BuildError) as exc:
            return StepResult("truststore", StepOutcome.FATAL, str(exc))
        except SetupError as exc:
            console.print(f"[yellow]Warning:[/yellow] {exc}")
            logger.warning("Truststore setup skipped: %s", exc)
            return StepResult("truststore", StepOutcome.DEGRADED, str(exc))

        if result.status is ImportStatus.SKIPPED:
            return StepResult("truststore", StepOutcome.SUCCEEDED, f"Alias '{result.alias}' already present")
        if result.warnings:
            return StepResult("truststore", StepOutcome.DEGRADED, "; ".join(result.warnings))
        return StepResult("truststore", StepOutcome.SUCCEEDED, f"Alias '{result.alias}' imported")

    def generate_artifacts(self, profile: DeploymentProfile) -> GeneratedArtifacts:
        return self.artifact_generator.generate(profile)

    def configure_firewall(self, profile: DeploymentProfile) -> StepResult:
        if not self.open_firewall:
            return StepResult("firewall", StepOutcome.SUCCEEDED, "Skipped by operator")
        return self.firewall_service.open_port(profile.listen_port)

    def build_summary(self, profile: DeploymentProfile, artifacts: GeneratedArtifacts) -> RunSummary:
        return RunSummary(
            profile=profile,
            paths=self.paths,
            artifacts=artifacts,
            internal_hostname=self.host_resolver.fqdn(),
            steps=list(self.steps),
            truststore_present=self.store.exists(),
            log_file=self.log_file,
        )

    def show_summary(self, summary: RunSummary):
        profile = summary.profile
        table = Table(title="SETUP COMPLETE", show_header=False, title_style="bold green")
        table.add_column("Setting", style="bold")
        table.add_column("Value")
        table.add_row("External Hostname", profile.external_hostname)
        table.add_row("Internal Hostname", summary.internal_hostname)
        table.add_row("Keycloak HTTP Port", str(profile.listen_port))
        table.add_row("FreeIPA Server", profile.directory_address or "N/A")
        table.add_row("Installation Type", profile.installation_type)
        table.add_row("Environment File", summary.artifacts.env_file)
        table.add_row("Compose File", summary.artifacts.compose_file)
        if summary.truststore_present:
            table.add_row("Truststore", summary.paths.truststore_file)
        for step in summary.steps:
            table.add_row(f"Step: {step.name}", f"{step.outcome.value} {step.message}".strip())
        table.add_row("Admin Username", summary.artifacts.admin_username)
        table.add_row("Admin Password", summary.artifacts.admin_password)
        if summary.log_file:
            table.add_row("Log File", summary.log_file)
        console.print(table)

        console.print("[bold]Next Steps:[/bold]")
        console.print("  1. Review the generated .env and docker-compose.yml files")
        console.print(f"  2. Start the containers: cd {summary.paths.work_dir} && docker compose up -d")
        console.print(f"  3. Access Keycloak at: http://{profile.external_hostname}:{profile.listen_port}")

        logger.info(
            "Setup complete: role=%s, FreeIPA server=%s, port=%s, files=%s, %s",
            profile.role.value,
            profile.directory_address,
            profile.listen_port,
            summary.artifacts.env_file,
            summary.artifacts.compose_file,
        )

    def run(self) -> int:
        try:
            logger.info("Starting Keycloak with FreeIPA backend setup...")
            logger.info("Work directory: %s", self.paths.work_dir)
            logger.info("External hostname: %s", self.hostname)

            self.check_existing_configuration()

            profile = self.detect_role()
            console.print(
                f"[bold blue]FreeIPA server: {profile.directory_address} "
                f"({profile.installation_type})[/bold blue]"
            )

            if profile.directory_address:
                step = self.setup_truststore(profile)
                self.steps.append(step)
                if step.outcome is StepOutcome.FATAL:
                    raise SetupError(step.message)

            artifacts = self.generate_artifacts(profile)
            self.steps.append(self.configure_firewall(profile))
            self.show_summary(self.build_summary(profile, artifacts))
            return 0

        except ConfigConflict as exc:
            console.print(f"[yellow]{exc}[/yellow]")
            logger.info(str(exc))
            return 0
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except SetupError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1


class TrustStoreRefresh(SetupRuntime):
    """Re-runs only the FreeIPA CA import against an existing deployment."""

    def __init__(
        self,
        ipa_server: Optional[str] = None,
        work_dir: str = DEFAULT_WORK_DIR,
        image: str = KEYCLOAK_IMAGE,
        force: bool = False,
        install_java: bool = True,
        fetch_timeout: float = FETCH_TIMEOUT,
        startup_delay: float = PROBE_STARTUP_DELAY,
        confirm: Optional[Callable[[str], bool]] = None,
        prompt: Optional[Callable[[str], str]] = None,
    ):
        self.ipa_server = validate_hostname(ipa_server, label="IPA server hostname") if ipa_server else None
        self.force = force
        self.prompt = prompt or ask_text
        super().__init__(
            work_dir=work_dir,
            image=image,
            install_java=install_java,
            fetch_timeout=fetch_timeout,
            startup_delay=startup_delay,
            confirm=confirm,
        )

    def resolve_server(self) -> str:
        if self.ipa_server:
            return self.ipa_server

        server = read_env_value(self.paths.env_file, "FREEIPA_SERVER_HOST")
        if server:
            logger.info("Using FreeIPA server from %s: %s", self.paths.env_file, server)
        else:
            server = self.prompt("Enter your FreeIPA server hostname or IP (e.g., ipa.example.com)").strip()

        if not server:
            raise SetupError(actionable_error("ipa_server_required"))
        return validate_hostname(server, label="IPA server hostname")

    def run(self) -> int:
        try:
            server = self.resolve_server()
            material = self.certificate_resolver.fetch_remote(server)

            force = self.force
            if not force and self.truststore_builder.has_alias():
                if not self.confirm("Certificate already imported. Re-import?"):
                    console.print("Skipping import.")
                    return 0
                force = True

            result = self.truststore_builder.ensure_imported(material, force=force)
            for warning in result.warnings:
                console.print(f"[yellow]Warning:[/yellow] {warning}")

            console.print(
                f"[bold green]The FreeIPA CA certificate is in {result.store_path}.[/bold green] "
                f"Start the containers with: cd {self.paths.work_dir} && docker compose up -d"
            )
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except SetupError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
