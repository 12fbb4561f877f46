"""FreeIPA CA certificate acquisition for kcipasetup."""

import os
import warnings

import requests
from urllib3.exceptions import InsecureRequestWarning

from kcipasetup.constants import FETCH_TIMEOUT, IPA_CA_FILE, IPA_CA_URL_TEMPLATE
from kcipasetup.errors import FetchError, LocalCertificateMissing
from kcipasetup.errors_catalog import actionable_error
from kcipasetup.models import CertificateMaterial, CertificateProvenance, DeploymentProfile, Role

PEM_MARKER = b"-----BEGIN CERTIFICATE-----"
DER_SEQUENCE_TAG = 0x30


def looks_like_certificate(data: bytes) -> bool:
    stripped = data.strip()
    if stripped.startswith(PEM_MARKER):
        return True
    return len(data) > 1 and data[0] == DER_SEQUENCE_TAG


class CertificateSourceResolver:
    """Reads the CA locally on a FreeIPA server, downloads it everywhere else."""

    def __init__(
        self,
        logger,
        console,
        ca_file: str = IPA_CA_FILE,
        requests_module=requests,
        timeout: float = FETCH_TIMEOUT,
    ):
        self.logger = logger
        self.console = console
        self.ca_file = ca_file
        self.requests = requests_module
        self.timeout = timeout

    def resolve(self, profile: DeploymentProfile) -> CertificateMaterial:
        if profile.role is Role.SERVER_COLOCATED:
            return self.read_local()
        return self.fetch_remote(profile.directory_address)

    def read_local(self) -> CertificateMaterial:
        self.logger.info("Using local CA certificate from FreeIPA server...")
        if not os.path.isfile(self.ca_file):
            raise LocalCertificateMissing(actionable_error("local_cert_missing", path=self.ca_file))

        try:
            with open(self.ca_file, "rb") as file_obj:
                data = file_obj.read()
        except OSError as exc:
            raise LocalCertificateMissing(
                actionable_error("local_cert_missing", path=self.ca_file)
            ) from exc

        self.console.print(f"[green]Certificate read from {self.ca_file}[/green]")
        return CertificateMaterial(data=data, provenance=CertificateProvenance.LOCAL_FILE, source=self.ca_file)

    def fetch_remote(self, address: str) -> CertificateMaterial:
        url = IPA_CA_URL_TEMPLATE.format(address=address)
        self.logger.info("Downloading CA certificate from %s ...", url)

        # Verification stays off: this download is what establishes the trust anchor.
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InsecureRequestWarning)
                response = self.requests.get(url, verify=False, timeout=self.timeout)
                response.raise_for_status()
        except self.requests.RequestException as exc:
            raise FetchError(actionable_error("cert_download_failed", url=url, cause=str(exc))) from exc

        data = response.content or b""
        if not looks_like_certificate(data):
            raise FetchError(actionable_error("cert_invalid", url=url))

        self.console.print("[green]Certificate downloaded successfully.[/green]")
        return CertificateMaterial(data=data, provenance=CertificateProvenance.REMOTE_FETCH, source=url)
