"""Environment and docker-compose generation for kcipasetup."""

import base64
import os
import secrets
from typing import Callable, List, Optional

from kcipasetup.constants import (
    FILE_MODE,
    KEYCLOAK_IMAGE,
    POSTGRES_IMAGE,
    SECRET_FILE_MODE,
    TRUSTSTORE_CONTAINER_PATH,
    TRUSTSTORE_PASSWORD,
)
from kcipasetup.models import DeploymentProfile, GeneratedArtifacts, SetupPaths

ADMIN_USERNAME = "admin"
DATABASE_NAME = "keycloak"
DATABASE_USER = "keycloak"


def generate_secret(num_bytes: int) -> str:
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


def read_env_value(env_file: str, key: str) -> Optional[str]:
    if not os.path.isfile(env_file):
        return None

    with open(env_file, "r", encoding="utf-8") as file_obj:
        for line in file_obj:
            name, sep, value = line.rstrip("\n").partition("=")
            if sep and name.strip() == key:
                return value.strip() or None
    return None


class ArtifactGenerator:
    """Writes ``.env`` and ``docker-compose.yml`` for the Keycloak deployment."""

    def __init__(
        self,
        paths: SetupPaths,
        resolver,
        filesystem,
        logger,
        console,
        image: str = KEYCLOAK_IMAGE,
        postgres_image: str = POSTGRES_IMAGE,
    ):
        self.paths = paths
        self.resolver = resolver
        self.filesystem = filesystem
        self.logger = logger
        self.console = console
        self.image = image
        self.postgres_image = postgres_image

    def find_conflicts(self) -> List[str]:
        candidates = [self.paths.env_file, self.paths.compose_file, self.paths.truststore_file]
        return [path for path in candidates if os.path.exists(path)]

    def resolve_conflicts(self, confirm: Callable[[str], bool]) -> bool:
        """Ask before overwriting; on approval the database directory is wiped as well."""
        conflicts = self.find_conflicts()
        if not conflicts:
            return True

        self.logger.info("Existing configuration detected: %s", ", ".join(conflicts))
        if not confirm("Existing configuration found, do you want to overwrite them?"):
            self.logger.info("User chose not to overwrite. Exiting.")
            return False

        self.logger.info("User confirmed overwrite")
        if os.path.isdir(self.paths.postgres_data_dir):
            self.logger.info("Deleting existing %s directory...", self.paths.postgres_data_dir)
            self.filesystem.remove_dir(self.paths.postgres_data_dir)
            self.console.print("[green]Existing PostgreSQL data removed.[/green]")
        return True

    def render_env(self, profile: DeploymentProfile, postgres_password: str, admin_password: str) -> str:
        server = profile.directory_address
        lines = [
            f"POSTGRES_DB={DATABASE_NAME}",
            f"POSTGRES_USER={DATABASE_USER}",
            f"POSTGRES_PASSWORD={postgres_password}",
            f"KC_BOOTSTRAP_ADMIN_USERNAME={ADMIN_USERNAME}",
            f"KC_BOOTSTRAP_ADMIN_PASSWORD={admin_password}",
            f"KC_HOSTNAME={profile.external_hostname}",
            f"KC_HOSTNAME_INTERNAL={self.resolver.fqdn()}",
            f"FREEIPA_SERVER_HOST={server}",
            f"FREEIPA_SERVER_IP={self.resolver.ipv4_address(server)}",
            f"KEYCLOAK_HTTP_PORT={profile.listen_port}",
            "KC_HOSTNAME_STRICT=false",
        ]
        return "\n".join(lines) + "\n"

    def render_compose(self) -> str:
        content = f"""
services:
  keycloak:
    image: {self.image}
    container_name: keycloak
    command: >
      start --http-enabled=true --proxy-headers=xforwarded
    environment:
      - KC_DB=postgres
      - KC_DB_URL=jdbc:postgresql://keycloak-postgres:5432/${{POSTGRES_DB}}
      - KC_DB_USERNAME=${{POSTGRES_USER}}
      - KC_DB_PASSWORD=${{POSTGRES_PASSWORD}}
      - KC_HOSTNAME=${{KC_HOSTNAME}}
      - KC_HOSTNAME_STRICT=${{KC_HOSTNAME_STRICT}}
      - KC_BOOTSTRAP_ADMIN_USERNAME=${{KC_BOOTSTRAP_ADMIN_USERNAME}}
      - KC_BOOTSTRAP_ADMIN_PASSWORD=${{KC_BOOTSTRAP_ADMIN_PASSWORD}}
      - KC_SPI_TRUSTSTORE_FILE_ENABLED=true
      - KC_SPI_TRUSTSTORE_FILE_FILE={TRUSTSTORE_CONTAINER_PATH}
      - KC_SPI_TRUSTSTORE_FILE_PASSWORD={TRUSTSTORE_PASSWORD}
      - KC_SPI_TRUSTSTORE_FILE_HOSTNAME_VERIFICATION_POLICY=ANY
    ports:
      - "${{KEYCLOAK_HTTP_PORT}}:8080"
    volumes:
      - {self.paths.truststore_dir}:{os.path.dirname(TRUSTSTORE_CONTAINER_PATH)}
      - {self.paths.providers_dir}:/opt/keycloak/providers
    depends_on:
      - keycloak-postgres

  keycloak-postgres:
    image: {self.postgres_image}
    container_name: keycloak-postgres
    environment:
      - POSTGRES_DB=${{POSTGRES_DB}}
      - POSTGRES_USER=${{POSTGRES_USER}}
      - POSTGRES_PASSWORD=${{POSTGRES_PASSWORD}}
    ports:
      - "5432:5432"
    volumes:
      - {self.paths.postgres_data_dir}:/var/lib/postgresql/data
"""
        return content.lstrip("\n")

    def generate(self, profile: DeploymentProfile) -> GeneratedArtifacts:
        self.logger.info("Generating .env file...")
        admin_password = generate_secret(16)
        env_content = self.render_env(
            profile,
            postgres_password=generate_secret(32),
            admin_password=admin_password,
        )
        self.filesystem.write_text(self.paths.env_file, env_content, SECRET_FILE_MODE)
        self.console.print(f"[green].env file created at {self.paths.env_file}[/green]")

        self.logger.info("Generating docker-compose.yml...")
        compose_content = self.render_compose()
        self.filesystem.write_text(self.paths.compose_file, compose_content, FILE_MODE)
        self.console.print(f"[green]docker-compose.yml created at {self.paths.compose_file}[/green]")

        return GeneratedArtifacts(
            env_file=self.paths.env_file,
            compose_file=self.paths.compose_file,
            env_content=env_content,
            compose_content=compose_content,
            admin_username=ADMIN_USERNAME,
            admin_password=admin_password,
        )
