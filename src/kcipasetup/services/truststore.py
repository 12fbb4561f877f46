"""Java truststore construction and FreeIPA CA import for kcipasetup.

The truststore at the target path is created once from a baseline ``cacerts``
file and mutated in place afterwards. The baseline is looked up through an
ordered chain of candidates, first in a disposable Keycloak container and then
on the host:

1. the Keycloak-bundled ``cacerts`` inside the image,
2. a search of the JVM directories inside the image,
3. the same search on the host,
4. the fixed distribution path ``/etc/pki/java/cacerts``.

Whether an import is needed is decided by alias presence only: an alias that
already exists counts as imported even if its certificate differs from the
one just fetched. Pass ``force=True`` to replace it.
"""

import glob
import os
import shlex
import tempfile
from typing import Iterable, List, Optional, Sequence

from kcipasetup.constants import (
    CACERTS_CANDIDATES,
    FILE_MODE,
    HOST_FALLBACK_CACERTS,
    JVM_SEARCH_ROOT,
    KEYCLOAK_CACERTS_PATH,
    KEYCLOAK_CONTAINER_NAME,
    KEYCLOAK_IMAGE,
    TRUSTSTORE_ALIAS,
)
from kcipasetup.errors import BuildError, SetupError, TrustStoreError
from kcipasetup.errors_catalog import actionable_error
from kcipasetup.models import CertificateMaterial, ImportResult, ImportStatus, TrustStore


class BaselineCandidate:
    """One strategy for locating a baseline ``cacerts`` file."""

    description = "baseline"

    def fetch(self, destination: str) -> Optional[str]:
        """Copy a baseline to ``destination`` and return where it came from, or ``None``."""
        raise NotImplementedError


class ContainerPathCandidate(BaselineCandidate):
    def __init__(self, container, paths: Sequence[str]):
        self.container = container
        self.paths = paths
        self.description = "container path"

    def fetch(self, destination: str) -> Optional[str]:
        for path in self.paths:
            if self.container.file_exists(path) and self.container.copy_out(path, destination):
                return f"{self.container.name}:{path}"
        return None


def build_search_script(search_root: str, candidates: Sequence[str]) -> str:
    patterns = " ".join(candidates)
    root = shlex.quote(search_root)
    return (
        "if command -v find >/dev/null 2>&1; then "
        f"FOUND=$(find {root} -type f -name cacerts 2>/dev/null | head -n 1); "
        'if [ -n "$FOUND" ]; then echo "$FOUND"; exit 0; fi; '
        "fi; "
        f"for p in {patterns}; do "
        'if [ -f "$p" ]; then echo "$p"; exit 0; fi; '
        "done; true"
    )


class ContainerSearchCandidate(BaselineCandidate):
    def __init__(self, container, search_root: str, candidates: Sequence[str]):
        self.container = container
        self.search_root = search_root
        self.candidates = candidates
        self.description = "container search"

    def fetch(self, destination: str) -> Optional[str]:
        found = self.container.run_script(build_search_script(self.search_root, self.candidates))
        path = found.splitlines()[0].strip() if found else ""
        if path and self.container.copy_out(path, destination):
            return f"{self.container.name}:{path}"
        return None


class HostSearchCandidate(BaselineCandidate):
    def __init__(self, search_root: str, candidates: Sequence[str], filesystem):
        self.search_root = search_root
        self.candidates = candidates
        self.filesystem = filesystem
        self.description = "host search"

    def locate(self) -> Optional[str]:
        if os.path.isdir(self.search_root):
            for current_root, dirs, files in os.walk(self.search_root):
                dirs.sort()
                if "cacerts" in files:
                    return os.path.join(current_root, "cacerts")

        for pattern in self.candidates:
            for path in sorted(glob.glob(pattern)):
                if os.path.isfile(path):
                    return path
        return None

    def fetch(self, destination: str) -> Optional[str]:
        path = self.locate()
        if path is None:
            return None
        self.filesystem.copy_file(path, destination, FILE_MODE)
        return path


class HostPathCandidate(BaselineCandidate):
    def __init__(self, path: str, filesystem):
        self.path = path
        self.filesystem = filesystem
        self.description = "host path"

    def fetch(self, destination: str) -> Optional[str]:
        if not os.path.isfile(self.path):
            return None
        self.filesystem.copy_file(self.path, destination, FILE_MODE)
        return self.path


def first_match(candidates: Iterable[BaselineCandidate], destination: str, logger) -> Optional[str]:
    for candidate in candidates:
        try:
            source = candidate.fetch(destination)
        except SetupError as exc:
            logger.debug("Baseline candidate '%s' failed: %s", candidate.description, exc)
            continue
        if source and os.path.isfile(destination):
            return source
    return None


class TrustStoreBuilder:
    """Owns mutation of the truststore file during a setup run."""

    def __init__(
        self,
        store: TrustStore,
        keytool,
        docker_runtime,
        filesystem,
        logger,
        console,
        alias: str = TRUSTSTORE_ALIAS,
        image: str = KEYCLOAK_IMAGE,
        install_java: bool = True,
        container_paths: Sequence[str] = (KEYCLOAK_CACERTS_PATH,),
        search_root: str = JVM_SEARCH_ROOT,
        candidates: Sequence[str] = CACERTS_CANDIDATES,
        host_fallback: str = HOST_FALLBACK_CACERTS,
    ):
        self.store = store
        self.keytool = keytool
        self.docker_runtime = docker_runtime
        self.filesystem = filesystem
        self.logger = logger
        self.console = console
        self.alias = alias
        self.image = image
        self.install_java = install_java
        self.container_paths = container_paths
        self.search_root = search_root
        self.candidates = candidates
        self.host_fallback = host_fallback

    def has_alias(self, alias: Optional[str] = None) -> bool:
        if not self.store.exists() or not self.keytool.available():
            return False
        return self.keytool.contains_alias(self.store, alias or self.alias)

    def host_candidates(self) -> List[BaselineCandidate]:
        return [
            HostSearchCandidate(self.search_root, self.candidates, self.filesystem),
            HostPathCandidate(self.host_fallback, self.filesystem),
        ]

    def locate_baseline(self, destination: str) -> str:
        self.console.print("[blue]Extracting system cacerts from temporary container...[/blue]")
        try:
            with self.docker_runtime.probe_container(self.image) as container:
                source = first_match(
                    [
                        ContainerPathCandidate(container, self.container_paths),
                        ContainerSearchCandidate(container, self.search_root, self.candidates),
                    ],
                    destination,
                    self.logger,
                )
        except SetupError as exc:
            self.logger.warning("Could not probe container image %s: %s", self.image, exc)
            source = None

        if source:
            self.logger.info("Found cacerts in container at: %s", source)
            return source

        self.logger.warning("Could not find cacerts in container, trying host system...")
        source = first_match(self.host_candidates(), destination, self.logger)
        if source:
            self.logger.info("Using host system cacerts: %s", source)
            return source

        raise BuildError(actionable_error("no_cacerts_found", image=self.image))

    def ensure_imported(
        self,
        material: CertificateMaterial,
        alias: Optional[str] = None,
        force: bool = False,
    ) -> ImportResult:
        alias = alias or self.alias
        result = ImportResult(status=ImportStatus.IMPORTED, alias=alias, store_path=self.store.path)

        with tempfile.TemporaryDirectory(prefix="kcipasetup-") as staging_dir:
            cert_file = os.path.join(staging_dir, "ipa-ca.crt")
            with open(cert_file, "wb") as file_obj:
                file_obj.write(material.data)

            if self.store.exists():
                self._require_keytool()
                self.logger.info("Checking if FreeIPA CA certificate is already in truststore...")
                if self.keytool.contains_alias(self.store, alias):
                    if not force:
                        self.console.print(
                            f"[green]Certificate '{alias}' already exists in truststore. "
                            "Skipping certificate import.[/green]"
                        )
                        result.status = ImportStatus.SKIPPED
                        return result
                    self._ensure_keycloak_stopped()
                    self.logger.info("Removing existing certificate '%s'...", alias)
                    self._delete_alias(alias)
                else:
                    self._ensure_keycloak_stopped()
            else:
                self._ensure_keycloak_stopped()
                baseline = os.path.join(staging_dir, "system-cacerts.jks")
                result.baseline_source = self.locate_baseline(baseline)
                self._require_keytool()
                self._install_baseline(baseline)
                self.console.print(f"[green]Custom truststore created at {self.store.path}[/green]")
                if self.keytool.contains_alias(self.store, alias):
                    self.logger.info("Baseline already carries '%s', removing it...", alias)
                    self._delete_alias(alias)

            self.logger.info("Importing FreeIPA CA certificate into truststore...")
            if not self.keytool.import_certificate(self.store, alias, cert_file):
                raise TrustStoreError(actionable_error("import_failed", alias=alias, store=self.store.path))

        self.console.print("[green]Certificate imported successfully.[/green]")
        self._verify(result)
        return result

    def _verify(self, result: ImportResult):
        self.logger.info("Verifying certificate import...")
        try:
            details = self.keytool.describe_alias(self.store, result.alias)
        except SetupError as exc:
            details = None
            self.logger.debug("Verification command failed: %s", exc)

        if details is None:
            warning = f"Could not verify alias '{result.alias}' in {result.store_path}"
            self.logger.warning(warning)
            result.warnings.append(warning)
            return

        result.verified = True
        self.logger.info("%s", details)

    def _require_keytool(self):
        if not self.keytool.ensure_available(install=self.install_java):
            raise TrustStoreError(actionable_error("keytool_missing"))

    def _ensure_keycloak_stopped(self):
        if self.docker_runtime.is_container_running(KEYCLOAK_CONTAINER_NAME):
            raise TrustStoreError(actionable_error("keycloak_running", container=KEYCLOAK_CONTAINER_NAME))

    def _install_baseline(self, baseline: str):
        try:
            self.filesystem.copy_file(baseline, self.store.path, FILE_MODE)
        except SetupError as exc:
            raise TrustStoreError(
                actionable_error("store_write_failed", store=self.store.path, cause=str(exc))
            ) from exc

    def _delete_alias(self, alias: str):
        try:
            self.keytool.delete_alias(self.store, alias)
        except SetupError as exc:
            raise TrustStoreError(
                actionable_error("alias_delete_failed", alias=alias, store=self.store.path, cause=str(exc))
            ) from exc
