import pytest

from kcipasetup.errors import InvalidInputError
from kcipasetup.services.validation import is_valid_hostname, validate_hostname


@pytest.mark.parametrize(
    "hostname",
    ["keycloak.example.com", "sso", "ipa-01.corp.example.org", "10.0.0.5", "A1"],
)
def test_valid_hostnames_are_accepted(hostname):
    assert is_valid_hostname(hostname) is True
    assert validate_hostname(hostname) == hostname


@pytest.mark.parametrize(
    "hostname",
    [
        "",
        "-keycloak.example.com",
        "keycloak.example.com-",
        "keycloak_example.com",
        "key cloak.example.com",
        "keycloak.example.com/",
        "sso.example.com\n",
        "a",
        "ünicode.example.com",
    ],
)
def test_invalid_hostnames_are_rejected(hostname):
    assert is_valid_hostname(hostname) is False
    with pytest.raises(InvalidInputError, match="Invalid hostname format"):
        validate_hostname(hostname)


def test_validate_hostname_uses_label_in_message():
    with pytest.raises(InvalidInputError, match="Invalid IPA server hostname format"):
        validate_hostname("bad_host", label="IPA server hostname")
