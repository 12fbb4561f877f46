"""Hostname and address lookups used when rendering the environment file."""

import socket
from typing import Optional


class HostResolver:
    def __init__(self, logger, socket_module=socket):
        self.logger = logger
        self.socket = socket_module

    def fqdn(self) -> str:
        return self.socket.getfqdn()

    def ipv4_address(self, host: Optional[str]) -> str:
        """First non-loopback IPv4 address of ``host``, or an empty string."""
        if not host:
            return ""

        try:
            entries = self.socket.getaddrinfo(host, None, self.socket.AF_INET, self.socket.SOCK_STREAM)
        except (OSError, UnicodeError) as exc:
            self.logger.warning("Could not resolve %s: %s", host, exc)
            return ""

        for entry in entries:
            address = entry[4][0]
            if not address.startswith("127."):
                return address
        return ""
