"""Static defaults shared across kcipasetup services."""

DEFAULT_WORK_DIR = "/opt/keycloak"
IPA_CONFIG_FILE = "/etc/ipa/default.conf"
IPA_CA_FILE = "/etc/ipa/ca.crt"
IPA_CA_URL_TEMPLATE = "http://{address}/ipa/config/ca.crt"

KEYCLOAK_IMAGE = "quay.io/keycloak/keycloak:latest"
POSTGRES_IMAGE = "postgres:15"
KEYCLOAK_CONTAINER_NAME = "keycloak"
PROBE_CONTAINER_PREFIX = "keycloak-temp"
PROBE_STARTUP_DELAY = 5.0

TRUSTSTORE_ALIAS = "freeipa-ca"
TRUSTSTORE_PASSWORD = "changeit"
TRUSTSTORE_CONTAINER_PATH = "/opt/keycloak/conf/cacerts"

SERVER_COLOCATED_PORT = 28080
CLIENT_PORT = 8080

FETCH_TIMEOUT = 30.0
HOSTNAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9.-]*[A-Za-z0-9]$"

KEYCLOAK_CACERTS_PATH = "/opt/keycloak/lib/security/cacerts"
JVM_SEARCH_ROOT = "/usr/lib/jvm"
CACERTS_CANDIDATES = (
    "/usr/lib/jvm/*/lib/security/cacerts",
    "/usr/lib/jvm/*/jre/lib/security/cacerts",
    "/usr/lib/jvm/*/security/cacerts",
    "/usr/lib/jvm/jre-*/lib/security/cacerts",
    "/usr/lib/jvm/java-*/lib/security/cacerts",
    "/usr/java/jre/lib/security/cacerts",
    "/opt/java/openjdk*/lib/security/cacerts",
    "/opt/jdk/lib/security/cacerts",
)
HOST_FALLBACK_CACERTS = "/etc/pki/java/cacerts"

DIR_MODE = 0o755
FILE_MODE = 0o644
SECRET_FILE_MODE = 0o600
