import pytest

from kcipasetup.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error(
        "cert_download_failed",
        url="http://ipa.example.com/ipa/config/ca.crt",
        cause="404 Client Error",
    )

    assert "http://ipa.example.com/ipa/config/ca.crt" in message
    assert "404 Client Error" in message
    assert "Suggested action:" in message
    assert "reachable" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")
