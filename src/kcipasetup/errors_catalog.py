"""Actionable error catalog for kcipasetup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_hostname": {
        "what": "Invalid {label} format: {value}",
        "next": "Use letters, digits, dots and hyphens only, e.g. `keycloak.example.com`.",
    },
    "not_joined": {
        "what": "FreeIPA configuration not detected. This server must be joined to a FreeIPA domain.",
        "next": (
            "Join the domain with `ipa-client-install --server=<ipa-server-fqdn> --domain=<domain>`, "
            "ensure FreeIPA is installed if this is the IPA server itself, "
            "or pass the FreeIPA server explicitly with `-s <ipa-server-fqdn>`."
        ),
    },
    "local_cert_missing": {
        "what": "Local CA certificate not found at {path}",
        "next": "Check the FreeIPA server installation or pass `-s <ipa-server-fqdn>` to fetch it remotely.",
    },
    "cert_download_failed": {
        "what": "Failed to download certificate from {url}: {cause}",
        "next": (
            "Verify that the FreeIPA server hostname/IP is correct, that the server is "
            "reachable from this machine, and that the FreeIPA web interface is running."
        ),
    },
    "cert_invalid": {
        "what": "Response from {url} is not a PEM or DER certificate.",
        "next": "Check that {url} serves the FreeIPA CA certificate.",
    },
    "no_cacerts_found": {
        "what": "Could not locate any system cacerts in container image {image} or on this host.",
        "next": "Install a Java runtime on this host (it ships `cacerts`) or check the Keycloak image name.",
    },
    "keycloak_running": {
        "what": "Keycloak container '{container}' is running.",
        "next": "Stop the containers first with `docker compose down` and re-run the truststore step.",
    },
    "keytool_missing": {
        "what": "keytool not found and Java/JDK installation failed.",
        "next": "Install a Java/JDK package manually and re-run `kcipa-truststore` to import the certificate.",
    },
    "store_write_failed": {
        "what": "Could not write truststore {store}: {cause}",
        "next": "Check that the parent directory of {store} is a writable directory, then re-run `kcipa-truststore`.",
    },
    "alias_delete_failed": {
        "what": "Could not remove certificate '{alias}' from {store}: {cause}",
        "next": "Delete it manually with `keytool -delete -alias {alias} -keystore {store}` and re-run `kcipa-truststore`.",
    },
    "import_failed": {
        "what": "Failed to import certificate '{alias}' into {store}.",
        "next": "Import it manually with `keytool -importcert -alias {alias} -keystore {store}`.",
    },
    "firewall_failed": {
        "what": "Failed to open port {port}/tcp in firewall.",
        "next": "Run `firewall-cmd --permanent --add-port={port}/tcp && firewall-cmd --reload`.",
    },
    "ipa_server_required": {
        "what": "FreeIPA server hostname is required.",
        "next": "Pass `-s <ipa-server-fqdn>` or generate `.env` first with `kcipa-setup`.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
