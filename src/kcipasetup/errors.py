"""Domain errors for kcipasetup."""


class SetupError(RuntimeError):
    """Raised when the setup cannot continue safely."""


class InvalidInputError(SetupError):
    """Raised for malformed operator input (hostnames, config values)."""


class DetectionError(SetupError):
    """Raised when the FreeIPA role of this host cannot be determined."""

    def __init__(self, message: str, reason: str = "not_joined"):
        super().__init__(message)
        self.reason = reason


class FetchError(SetupError):
    """Raised when the FreeIPA CA certificate cannot be obtained."""


class LocalCertificateMissing(FetchError):
    """Raised when a FreeIPA server host has no local CA certificate."""


class BuildError(SetupError):
    """Raised when no baseline Java truststore can be located."""


class TrustStoreError(SetupError):
    """Raised when the certificate could not be imported into the truststore."""


class ConfigConflict(SetupError):
    """Raised when the operator declines to overwrite an existing configuration."""
