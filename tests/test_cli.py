from click.testing import CliRunner

import kcipasetup.cli as cli_module


def _fake_setup(captured, exit_code=0):
    class FakeKeycloakSetup:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self):
            return exit_code

    return FakeKeycloakSetup


def test_cli_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / ".kcipasetup.yml"
    config_file.write_text(
        "hostname: config.example.com\n" "ipa_server: ipa.example.com\n" "fetch_timeout: 45\n" "open_firewall: false\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup(captured))

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--config", str(config_file), "-h", "sso.example.com", "--work-dir", str(tmp_path), "-y"],
    )

    assert result.exit_code == 0
    assert captured["hostname"] == "sso.example.com"
    assert captured["ipa_server"] == "ipa.example.com"
    assert captured["fetch_timeout"] == 45.0
    assert captured["open_firewall"] is False
    assert captured["assume_yes"] is True
    assert captured["work_dir"] == str(tmp_path)


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".kcipasetup.yml").write_text("hostname: default.example.com\n", encoding="utf-8")
    captured = {}
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code == 0
    assert captured["hostname"] == "default.example.com"
    assert captured["work_dir"] == "/opt/keycloak"
    assert captured["open_firewall"] is True
    assert captured["install_java"] is True


def test_cli_requires_hostname(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code != 0
    assert "External hostname is required" in result.output
    assert captured == {}


def test_cli_rejects_invalid_hostname(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["-h", "sso example.com"])

    assert result.exit_code != 0
    assert "Invalid hostname format" in result.output
    assert captured == {}


def test_cli_rejects_invalid_ipa_server(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup({}))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["-h", "sso.example.com", "-s", "ipa_example.com"])

    assert result.exit_code != 0
    assert "Invalid IPA server hostname format" in result.output


def test_cli_rejects_unknown_config_key(tmp_path):
    config_file = tmp_path / "bad.yml"
    config_file.write_text("hostname: sso.example.com\nsource: db.dump\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code != 0
    assert "source" in result.output


def test_cli_propagates_run_exit_code(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "KeycloakSetup", _fake_setup({}, exit_code=1))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["-h", "sso.example.com"])

    assert result.exit_code == 1


def test_truststore_command_passes_force_and_server(tmp_path, monkeypatch):
    captured = {}

    class FakeRefresh:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self):
            return 0

    monkeypatch.setattr(cli_module, "TrustStoreRefresh", FakeRefresh)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.truststore,
        ["-s", "ipa.example.com", "--force", "--no-install-java", "--work-dir", str(tmp_path)],
    )

    assert result.exit_code == 0
    assert captured["ipa_server"] == "ipa.example.com"
    assert captured["force"] is True
    assert captured["install_java"] is False
    assert captured["work_dir"] == str(tmp_path)
