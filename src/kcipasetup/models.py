"""Shared domain models for kcipasetup."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .constants import CLIENT_PORT, SERVER_COLOCATED_PORT, TRUSTSTORE_PASSWORD


class Role(Enum):
    SERVER_COLOCATED = "server_colocated"
    CLIENT = "client"


@dataclass(frozen=True)
class DeploymentProfile:
    """Result of role detection, owned by the orchestrator for one run."""

    role: Role
    directory_address: str
    directory_address_explicit: bool
    external_hostname: str

    @property
    def listen_port(self) -> int:
        # FreeIPA itself listens on 8080 when Keycloak shares its host.
        if self.role is Role.SERVER_COLOCATED:
            return SERVER_COLOCATED_PORT
        return CLIENT_PORT

    @property
    def installation_type(self) -> str:
        if self.role is Role.SERVER_COLOCATED:
            return "On FreeIPA Server"
        return "Standalone (FreeIPA Client)"


class CertificateProvenance(Enum):
    LOCAL_FILE = "local_file"
    REMOTE_FETCH = "remote_fetch"


@dataclass(frozen=True)
class CertificateMaterial:
    data: bytes
    provenance: CertificateProvenance
    source: str


@dataclass(frozen=True)
class TrustStore:
    """Handle on the password-protected Java truststore file."""

    path: str
    password: str = TRUSTSTORE_PASSWORD

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)


class ImportStatus(Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"


@dataclass
class ImportResult:
    status: ImportStatus
    alias: str
    store_path: str
    verified: bool = False
    warnings: List[str] = field(default_factory=list)
    baseline_source: Optional[str] = None


class StepOutcome(Enum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    name: str
    outcome: StepOutcome
    message: str = ""


@dataclass(frozen=True)
class GeneratedArtifacts:
    env_file: str
    compose_file: str
    env_content: str
    compose_content: str
    admin_username: str
    admin_password: str


@dataclass(frozen=True)
class SetupPaths:
    """Filesystem layout of a Keycloak deployment rooted at ``work_dir``."""

    work_dir: str
    env_file: str
    compose_file: str
    truststore_file: str
    postgres_data_dir: str
    providers_dir: str

    @classmethod
    def from_work_dir(cls, work_dir: str) -> "SetupPaths":
        runtime_dir = os.path.join(work_dir, "runtime")
        return cls(
            work_dir=work_dir,
            env_file=os.path.join(work_dir, ".env"),
            compose_file=os.path.join(work_dir, "docker-compose.yml"),
            truststore_file=os.path.join(runtime_dir, "keycloak_conf", "cacerts"),
            postgres_data_dir=os.path.join(runtime_dir, "postgres_data"),
            providers_dir=os.path.join(work_dir, "providers"),
        )

    @property
    def truststore_dir(self) -> str:
        return os.path.dirname(self.truststore_file)


@dataclass
class RunSummary:
    profile: DeploymentProfile
    paths: SetupPaths
    artifacts: GeneratedArtifacts
    internal_hostname: str
    steps: List[StepResult] = field(default_factory=list)
    truststore_present: bool = False
    log_file: Optional[str] = None
