from pathlib import Path
from typing import Optional

import yaml

from codeaudit_core.exceptions import ConfigurationError

DEFAULT_CONFIG: dict = {
    "audit_dir": ".",
    "remote": "origin",
    "branch": "master",
    "source_dir": "source",
    "user": None,  # None = use `git config user.email` of the audit repository
}


def load_config(config_path: str = ".codeaudit.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .codeaudit.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config
