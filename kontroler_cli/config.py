"""Configuration loading for Kontroler CLI.

Supports configuration from:
1. Default values
2. Config file (~/.kontroler/config.yaml)
3. Environment variables
4. CLI arguments (handled by Typer)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_PATH = Path.home() / ".kontroler" / "config.yaml"

# Config key -> environment variable
ENV_VARS = {
    "url": "KONTROLER_URL",
    "username": "KONTROLER_USERNAME",
    "password": "KONTROLER_PASSWORD",
    "auth_cookie_name": "KONTROLER_AUTH_COOKIE_NAME",
    "timeout": "KONTROLER_TIMEOUT",
}


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from file and environment.

    Priority (lowest to highest):
    1. Default values
    2. Config file
    3. Environment variables

    Only the keys in ENV_VARS are read from the file; anything else in it
    is ignored.

    Args:
        config_path: Config file to read instead of ~/.kontroler/config.yaml.

    Returns:
        Configuration dictionary with ClientConfig field names as keys.
    """
    config: dict[str, Any] = {
        "url": "http://localhost:8080",
        "username": None,
        "password": None,
        "auth_cookie_name": None,
        "timeout": None,
    }

    path = config_path or CONFIG_PATH
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f)
        if file_config:
            config.update({key: file_config[key] for key in ENV_VARS if key in file_config})

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            config[key] = os.environ[env_var]

    return config

