"""FreeIPA join-state inspection for kcipasetup."""

import os
from typing import Dict, Optional

from kcipasetup.constants import IPA_CA_FILE, IPA_CONFIG_FILE
from kcipasetup.errors import DetectionError
from kcipasetup.errors_catalog import actionable_error
from kcipasetup.models import DeploymentProfile, Role


def classify(client_marker: bool, server_marker: bool, ca_present: bool) -> Optional[Role]:
    """Map the three join-state facts to a role, or ``None`` when not joined."""
    if client_marker:
        return Role.CLIENT
    if server_marker and ca_present:
        return Role.SERVER_COLOCATED
    return None


def parse_join_state(content: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";", "[")) or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if key and value and key not in values:
            values[key] = value
    return values


class RoleDetector:
    """Classifies this host as the FreeIPA server itself or one of its clients."""

    def __init__(self, logger, config_file: str = IPA_CONFIG_FILE, ca_file: str = IPA_CA_FILE):
        self.logger = logger
        self.config_file = config_file
        self.ca_file = ca_file

    def read_join_state(self) -> Dict[str, str]:
        if not os.path.isfile(self.config_file):
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as file_obj:
                return parse_join_state(file_obj.read())
        except OSError as exc:
            self.logger.warning("Could not read %s: %s", self.config_file, exc)
            return {}

    def detect(self, external_hostname: str, explicit_server: Optional[str] = None) -> DeploymentProfile:
        if explicit_server:
            self.logger.info("Using FreeIPA server specified via -s argument: %s", explicit_server)
            return DeploymentProfile(
                role=Role.CLIENT,
                directory_address=explicit_server,
                directory_address_explicit=True,
                external_hostname=external_hostname,
            )

        self.logger.info("Detecting FreeIPA configuration...")
        join_state = self.read_join_state()
        server = join_state.get("server", "")
        host = join_state.get("host", "")

        role = classify(
            client_marker=bool(server),
            server_marker=bool(host),
            ca_present=os.path.isfile(self.ca_file),
        )
        if role is None:
            raise DetectionError(actionable_error("not_joined"), reason="not_joined")

        if role is Role.CLIENT:
            self.logger.info("Detected FreeIPA client configuration (IPA server: %s)", server)
            address = server
        else:
            self.logger.info("Detected FreeIPA server installation (local host: %s)", host)
            self.logger.info("Using port 28080 for Keycloak (port 8080 is used by FreeIPA)")
            address = host

        return DeploymentProfile(
            role=role,
            directory_address=address,
            directory_address_explicit=False,
            external_hostname=external_hostname,
        )
