"""Docker runtime services for kcipasetup."""

import signal
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from kcipasetup.constants import PROBE_CONTAINER_PREFIX, PROBE_STARTUP_DELAY
from kcipasetup.errors import SetupError


class ProbeContainer:
    """Handle on a running disposable container; only valid inside ``probe_container``."""

    def __init__(self, name: str, run_cmd: Callable):
        self.name = name
        self._run_cmd = run_cmd

    def file_exists(self, path: str) -> bool:
        result = self._run_cmd(
            ["docker", "exec", self.name, "test", "-f", path],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def run_script(self, script: str) -> str:
        result = self._run_cmd(
            ["docker", "exec", self.name, "sh", "-c", script],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return ""
        return (result.stdout or "").strip()

    def copy_out(self, path: str, destination: str) -> bool:
        result = self._run_cmd(
            ["docker", "cp", f"{self.name}:{path}", destination],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0


_NOT_TRAPPED = object()


def _raise_interrupt(signum, _frame):
    raise KeyboardInterrupt(f"Received signal {signum}")


class DockerRuntimeService:
    """Manages container state checks and the disposable probe container lifecycle."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        startup_delay: float = PROBE_STARTUP_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.startup_delay = startup_delay
        self.sleep = sleep

    def is_container_running(self, name: str) -> bool:
        try:
            result = self.run_cmd(
                ["docker", "ps", "--filter", f"name=^{name}$", "--format", "{{.Names}}"],
                check=False,
                capture_output=True,
            )
        except SetupError as exc:
            self.logger.debug("Could not query running containers: %s", exc)
            return False

        if result.returncode != 0:
            return False
        names: List[str] = (result.stdout or "").split()
        return name in names

    def remove_container(self, name: str):
        self.run_cmd(["docker", "stop", name], check=False, capture_output=True)
        self.run_cmd(["docker", "rm", "-f", name], check=False, capture_output=True)

    @contextmanager
    def probe_container(self, image: str, name: Optional[str] = None) -> Iterator[ProbeContainer]:
        """Run ``image`` idle, yield it for probing, and always remove it afterwards."""
        container_name = name or f"{PROBE_CONTAINER_PREFIX}-{int(time.time())}"
        previous_handler = self._trap_sigterm()

        self.console.print(f"[blue]Starting temporary container from {image}...[/blue]")
        try:
            self.run_cmd(
                [
                    "docker",
                    "run",
                    "-d",
                    "--name",
                    container_name,
                    "--entrypoint",
                    "sleep",
                    image,
                    "infinity",
                ],
                capture_output=True,
            )
            self.sleep(self.startup_delay)
            yield ProbeContainer(container_name, self.run_cmd)
        finally:
            try:
                self.remove_container(container_name)
                self.logger.info("Temporary container %s removed", container_name)
            except SetupError as exc:
                self.logger.warning("Could not remove temporary container %s: %s", container_name, exc)
            self._restore_sigterm(previous_handler)

    @staticmethod
    def _trap_sigterm():
        if threading.current_thread() is not threading.main_thread():
            return _NOT_TRAPPED
        return signal.signal(signal.SIGTERM, _raise_interrupt)

    @staticmethod
    def _restore_sigterm(previous_handler):
        if previous_handler is _NOT_TRAPPED:
            return
        signal.signal(signal.SIGTERM, previous_handler or signal.SIG_DFL)
