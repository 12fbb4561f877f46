import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_WORK_DIR,
    FETCH_TIMEOUT,
    IPA_CA_FILE,
    IPA_CONFIG_FILE,
    KEYCLOAK_IMAGE,
    POSTGRES_IMAGE,
    PROBE_STARTUP_DELAY,
)
from .core import KeycloakSetup, SetupError, TrustStoreRefresh
from .services.config_loader import ConfigLoader
from .services.validation import is_valid_hostname

DEFAULT_CONFIG_FILE = ".kcipasetup.yml"
CONTEXT_SETTINGS = {"help_option_names": ["--help", "-?"]}


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _load_config(config):
    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path
        return ConfigLoader().load(resolved_config)
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose, log_file):
    logger = logging.getLogger("kcipasetup")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _check_hostname(value, label):
    if value is not None and not is_valid_hostname(str(value)):
        raise click.ClickException(f"Invalid {label} format: {value}")


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-h",
    "--hostname",
    required=False,
    help="External hostname for Keycloak (e.g. keycloak.example.com).",
)
@click.option(
    "-s",
    "--ipa-server",
    required=False,
    help="FreeIPA server hostname. Overrides automatic detection from /etc/ipa/default.conf.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--work-dir", required=False, type=click.Path(), help=f"Deployment directory (default: {DEFAULT_WORK_DIR}).")
@click.option("--image", required=False, help=f"Keycloak container image (default: {KEYCLOAK_IMAGE}).")
@click.option("--postgres-image", required=False, help=f"PostgreSQL container image (default: {POSTGRES_IMAGE}).")
@click.option(
    "-y",
    "--yes",
    "assume_yes",
    is_flag=True,
    default=None,
    help="Overwrite an existing configuration without asking. Deletes the PostgreSQL data directory.",
)
@click.option(
    "--firewall/--no-firewall",
    "open_firewall",
    default=None,
    help="Open the Keycloak HTTP port in firewalld (default: enabled).",
)
@click.option(
    "--install-java/--no-install-java",
    default=None,
    help="Install a JDK when keytool is missing (default: enabled).",
)
@click.option(
    "--fetch-timeout",
    required=False,
    type=float,
    default=None,
    help=f"Timeout in seconds for the CA certificate download (default: {FETCH_TIMEOUT:g}).",
)
@click.option(
    "--startup-delay",
    required=False,
    type=float,
    default=None,
    help=f"Seconds to wait for the temporary Keycloak container (default: {PROBE_STARTUP_DELAY:g}).",
)
@click.option("--ipa-config-file", required=False, type=click.Path(), help=f"FreeIPA join-state file (default: {IPA_CONFIG_FILE}).")
@click.option("--ipa-ca-file", required=False, type=click.Path(), help=f"FreeIPA CA certificate (default: {IPA_CA_FILE}).")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    hostname,
    ipa_server,
    config,
    work_dir,
    image,
    postgres_image,
    assume_yes,
    open_firewall,
    install_java,
    fetch_timeout,
    startup_delay,
    ipa_config_file,
    ipa_ca_file,
    verbose,
    log_file,
):
    """Set up Keycloak with a FreeIPA backend: truststore, .env and docker-compose.yml.

    Running on the FreeIPA server uses the local CA certificate and port 28080;
    running on a FreeIPA client downloads the CA certificate and uses port 8080.
    """
    config_values = _load_config(config)

    hostname = _resolve_option(hostname, config_values, "hostname")
    ipa_server = _resolve_option(ipa_server, config_values, "ipa_server")
    work_dir = _resolve_option(work_dir, config_values, "work_dir", default=DEFAULT_WORK_DIR)
    image = _resolve_option(image, config_values, "image", default=KEYCLOAK_IMAGE)
    postgres_image = _resolve_option(postgres_image, config_values, "postgres_image", default=POSTGRES_IMAGE)
    assume_yes = bool(_resolve_option(assume_yes, config_values, "assume_yes", default=False))
    open_firewall = bool(_resolve_option(open_firewall, config_values, "open_firewall", default=True))
    install_java = bool(_resolve_option(install_java, config_values, "install_java", default=True))
    fetch_timeout = float(_resolve_option(fetch_timeout, config_values, "fetch_timeout", default=FETCH_TIMEOUT))
    startup_delay = float(
        _resolve_option(startup_delay, config_values, "startup_delay", default=PROBE_STARTUP_DELAY)
    )
    ipa_config_file = _resolve_option(ipa_config_file, config_values, "ipa_config_file", default=IPA_CONFIG_FILE)
    ipa_ca_file = _resolve_option(ipa_ca_file, config_values, "ipa_ca_file", default=IPA_CA_FILE)
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if not hostname:
        click.echo(click.get_current_context().get_usage(), err=True)
        raise click.ClickException("External hostname is required (-h option, or `hostname` in config).")
    _check_hostname(hostname, "hostname")
    _check_hostname(ipa_server, "IPA server hostname")

    _configure_logging(verbose, log_file)

    try:
        setup = KeycloakSetup(
            hostname=hostname,
            ipa_server=ipa_server,
            work_dir=work_dir,
            image=image,
            postgres_image=postgres_image,
            assume_yes=assume_yes,
            open_firewall=open_firewall,
            install_java=install_java,
            fetch_timeout=fetch_timeout,
            startup_delay=startup_delay,
            ipa_config_file=ipa_config_file,
            ipa_ca_file=ipa_ca_file,
            log_file=log_file,
        )
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(setup.run())


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-s",
    "--ipa-server",
    required=False,
    help="FreeIPA server hostname. Defaults to FREEIPA_SERVER_HOST from the deployment .env.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--work-dir", required=False, type=click.Path(), help=f"Deployment directory (default: {DEFAULT_WORK_DIR}).")
@click.option("--image", required=False, help=f"Keycloak container image (default: {KEYCLOAK_IMAGE}).")
@click.option("--force", is_flag=True, default=None, help="Replace the certificate even if the alias already exists.")
@click.option(
    "--install-java/--no-install-java",
    default=None,
    help="Install a JDK when keytool is missing (default: enabled).",
)
@click.option("--fetch-timeout", required=False, type=float, default=None, help="CA download timeout in seconds.")
@click.option("--startup-delay", required=False, type=float, default=None, help="Temporary container startup delay.")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def truststore(
    ipa_server,
    config,
    work_dir,
    image,
    force,
    install_java,
    fetch_timeout,
    startup_delay,
    verbose,
    log_file,
):
    """Import the FreeIPA CA certificate into Keycloak's truststore.

    Run this before starting the containers; stop them first with `docker compose down`.
    """
    config_values = _load_config(config)

    ipa_server = _resolve_option(ipa_server, config_values, "ipa_server")
    work_dir = _resolve_option(work_dir, config_values, "work_dir", default=DEFAULT_WORK_DIR)
    image = _resolve_option(image, config_values, "image", default=KEYCLOAK_IMAGE)
    force = bool(_resolve_option(force, config_values, "force", default=False))
    install_java = bool(_resolve_option(install_java, config_values, "install_java", default=True))
    fetch_timeout = float(_resolve_option(fetch_timeout, config_values, "fetch_timeout", default=FETCH_TIMEOUT))
    startup_delay = float(
        _resolve_option(startup_delay, config_values, "startup_delay", default=PROBE_STARTUP_DELAY)
    )
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    _check_hostname(ipa_server, "IPA server hostname")
    _configure_logging(verbose, log_file)

    try:
        refresh = TrustStoreRefresh(
            ipa_server=ipa_server,
            work_dir=work_dir,
            image=image,
            force=force,
            install_java=install_java,
            fetch_timeout=fetch_timeout,
            startup_delay=startup_delay,
        )
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(refresh.run())


if __name__ == "__main__":
    main()
