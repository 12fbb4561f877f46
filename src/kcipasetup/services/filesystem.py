"""Filesystem helpers for kcipasetup."""

import logging
import os
import shutil
import sys

from rich.console import Console

from kcipasetup.errors import SetupError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dir(self, path: str):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise SetupError(f"Could not create directory {path}: {exc}") from exc

    def write_text(self, path: str, content: str, mode: int):
        self.ensure_dir(os.path.dirname(path) or ".")
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise SetupError(f"Could not write {path}: {exc}") from exc
        self.set_permissions(path, mode)

    def copy_file(self, source: str, destination: str, mode: int):
        self.ensure_dir(os.path.dirname(destination) or ".")
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise SetupError(f"Could not copy {source} to {destination}: {exc}") from exc
        self.set_permissions(destination, mode)

    def remove_dir(self, path: str):
        if not os.path.exists(path):
            return

        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise SetupError(f"Could not remove {path}: {exc}") from exc
        self.logger.debug("Removed directory: %s", path)
