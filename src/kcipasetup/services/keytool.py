"""Java keytool wrapper and JDK installation fallback for kcipasetup."""

import os
from typing import Callable, Dict, List, Optional

from kcipasetup.errors import SetupError
from kcipasetup.models import TrustStore

OS_RELEASE_FILE = "/etc/os-release"

_PACKAGE_INSTALLERS: Dict[str, List[List[str]]] = {
    "rhel": [
        ["dnf", "install", "-y", "java-latest-openjdk"],
        ["yum", "install", "-y", "java-latest-openjdk"],
    ],
    "debian": [["apt-get", "install", "-y", "default-jdk"]],
    "alpine": [["apk", "add", "--no-cache", "openjdk11"]],
}
_OS_FAMILIES = {
    "rhel": "rhel",
    "centos": "rhel",
    "fedora": "rhel",
    "rocky": "rhel",
    "almalinux": "rhel",
    "debian": "debian",
    "ubuntu": "debian",
    "alpine": "alpine",
}


def read_os_id(os_release_file: str = OS_RELEASE_FILE) -> Optional[str]:
    if not os.path.isfile(os_release_file):
        return None

    with open(os_release_file, "r", encoding="utf-8") as file_obj:
        for line in file_obj:
            key, _, value = line.strip().partition("=")
            if key == "ID":
                return value.strip().strip('"').lower() or None
    return None


class KeytoolService:
    """Runs keytool against a truststore and installs a JDK when keytool is missing."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        is_available: Callable[[str], bool],
        os_release_file: str = OS_RELEASE_FILE,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.is_available = is_available
        self.os_release_file = os_release_file

    def available(self) -> bool:
        return self.is_available("keytool")

    def ensure_available(self, install: bool = True) -> bool:
        if self.available():
            return True
        if not install:
            return False

        self.logger.info("keytool not found. Attempting to install Java/JDK...")
        os_id = read_os_id(self.os_release_file)
        family = _OS_FAMILIES.get(os_id or "")
        if family is None:
            self.logger.warning("Unsupported or undetected OS '%s'. Java installation skipped.", os_id)
            return False

        if family == "debian":
            self._try_run(["apt-get", "update"])
        for command in _PACKAGE_INSTALLERS[family]:
            if not self.is_available(command[0]):
                continue
            if self._try_run(command):
                break

        if self.available():
            self.console.print("[green]Java/JDK installed successfully.[/green]")
            return True

        self.logger.warning("Java/JDK installation failed or keytool not found in PATH")
        return False

    def contains_alias(self, store: TrustStore, alias: str) -> bool:
        result = self.run_cmd(
            self._base(store, "-list") + ["-alias", alias],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def delete_alias(self, store: TrustStore, alias: str):
        self.run_cmd(self._base(store, "-delete") + ["-alias", alias], capture_output=True)

    def import_certificate(self, store: TrustStore, alias: str, cert_file: str) -> bool:
        result = self.run_cmd(
            self._base(store, "-importcert")
            + ["-trustcacerts", "-alias", alias, "-file", cert_file, "-noprompt"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            self.logger.debug("keytool import failed: %s", (result.stderr or "").strip())
        return result.returncode == 0

    def describe_alias(self, store: TrustStore, alias: str) -> Optional[str]:
        result = self.run_cmd(
            self._base(store, "-list") + ["-v", "-alias", alias],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        lines = (result.stdout or "").splitlines()
        return "\n".join(lines[:10])

    @staticmethod
    def _base(store: TrustStore, action: str) -> List[str]:
        return ["keytool", action, "-keystore", store.path, "-storepass", store.password]

    def _try_run(self, command: List[str]) -> bool:
        try:
            result = self.run_cmd(command, check=False, capture_output=True)
        except SetupError as exc:
            self.logger.debug("Package installation command failed: %s", exc)
            return False
        return result.returncode == 0
