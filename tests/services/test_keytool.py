import subprocess

from kcipasetup.models import TrustStore
from kcipasetup.services.keytool import KeytoolService, read_os_id


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class InstallingRunner:
    """Pretends that a successful package install puts keytool on PATH."""

    def __init__(self, tools, installs_keytool=True):
        self.tools = set(tools)
        self.installs_keytool = installs_keytool
        self.commands = []

    def is_available(self, tool):
        return tool in self.tools

    def __call__(self, cmd, check=True, capture_output=False):
        self.commands.append(cmd)
        if cmd[0] in ("dnf", "yum", "apk") or cmd[:2] == ["apt-get", "install"]:
            if self.installs_keytool:
                self.tools.add("keytool")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def _service(runner, os_release):
    return KeytoolService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=runner,
        is_available=runner.is_available,
        os_release_file=str(os_release),
    )


def test_read_os_id_strips_quotes(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text('NAME="Rocky Linux"\nID="rocky"\n', encoding="utf-8")

    assert read_os_id(str(os_release)) == "rocky"
    assert read_os_id(str(tmp_path / "missing")) is None


def test_ensure_available_short_circuits_when_present(tmp_path):
    runner = InstallingRunner(tools={"keytool"})

    assert _service(runner, tmp_path / "os-release").ensure_available() is True
    assert runner.commands == []


def test_ensure_available_installs_with_dnf_on_rhel(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text("ID=almalinux\n", encoding="utf-8")
    runner = InstallingRunner(tools={"dnf"})

    assert _service(runner, os_release).ensure_available() is True
    assert runner.commands == [["dnf", "install", "-y", "java-latest-openjdk"]]


def test_ensure_available_updates_apt_before_install(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text("ID=ubuntu\n", encoding="utf-8")
    runner = InstallingRunner(tools={"apt-get"})

    assert _service(runner, os_release).ensure_available() is True
    assert runner.commands[0] == ["apt-get", "update"]
    assert runner.commands[1] == ["apt-get", "install", "-y", "default-jdk"]


def test_ensure_available_gives_up_on_unknown_os(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text("ID=plan9\n", encoding="utf-8")
    runner = InstallingRunner(tools={"dnf"})

    assert _service(runner, os_release).ensure_available() is False
    assert runner.commands == []


def test_ensure_available_respects_install_opt_out(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text("ID=fedora\n", encoding="utf-8")
    runner = InstallingRunner(tools={"dnf"})

    assert _service(runner, os_release).ensure_available(install=False) is False
    assert runner.commands == []


def test_keytool_commands_use_store_password(tmp_path):
    runner = InstallingRunner(tools={"keytool"})
    service = _service(runner, tmp_path / "os-release")
    store = TrustStore(path=str(tmp_path / "cacerts"))

    service.contains_alias(store, "freeipa-ca")
    service.import_certificate(store, "freeipa-ca", "/tmp/ipa-ca.crt")

    list_cmd, import_cmd = runner.commands
    assert list_cmd[:6] == ["keytool", "-list", "-keystore", str(tmp_path / "cacerts"), "-storepass", "changeit"]
    assert import_cmd[1] == "-importcert"
    assert "-noprompt" in import_cmd
    assert import_cmd[import_cmd.index("-file") + 1] == "/tmp/ipa-ca.crt"
