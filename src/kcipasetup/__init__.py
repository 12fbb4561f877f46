"""
kcipasetup - Keycloak with FreeIPA backend setup tool
"""

__version__ = "0.1.0"

from .core import KeycloakSetup, SetupError, TrustStoreRefresh

__all__ = ["KeycloakSetup", "SetupError", "TrustStoreRefresh"]
