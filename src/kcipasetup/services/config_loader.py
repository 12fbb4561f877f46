"""Configuration loader for kcipasetup."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from kcipasetup.errors import SetupError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "hostname",
        "ipa_server",
        "work_dir",
        "image",
        "postgres_image",
        "assume_yes",
        "open_firewall",
        "install_java",
        "fetch_timeout",
        "startup_delay",
        "ipa_config_file",
        "ipa_ca_file",
        "verbose",
        "log_file",
        "force",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise SetupError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise SetupError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise SetupError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise SetupError(f"Unknown configuration keys: {unknown_list}")

        return parsed
