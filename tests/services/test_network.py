import socket

from kcipasetup.services.network import HostResolver


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


class FakeSocket:
    AF_INET = socket.AF_INET
    SOCK_STREAM = socket.SOCK_STREAM

    def __init__(self, addresses=None, error=None):
        self.addresses = addresses or []
        self.error = error

    def getfqdn(self):
        return "host.example.com"

    def getaddrinfo(self, host, port, family, kind):
        if self.error:
            raise self.error
        return [(family, kind, 6, "", (address, 0)) for address in self.addresses]


def test_ipv4_address_skips_loopback():
    resolver = HostResolver(DummyLogger(), socket_module=FakeSocket(["127.0.1.1", "192.0.2.7"]))

    assert resolver.ipv4_address("ipa.example.com") == "192.0.2.7"


def test_ipv4_address_is_empty_when_unresolvable():
    resolver = HostResolver(DummyLogger(), socket_module=FakeSocket(error=socket.gaierror("no such host")))

    assert resolver.ipv4_address("ipa.example.com") == ""
    assert resolver.ipv4_address("") == ""


def test_fqdn_delegates_to_socket():
    assert HostResolver(DummyLogger(), socket_module=FakeSocket()).fqdn() == "host.example.com"
