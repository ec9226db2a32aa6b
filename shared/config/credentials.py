"""
Credential loader for the channel chat client.

Design rules:
- Import-safe (no side effects)
- Fail loudly: a missing or malformed config file aborts startup
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from shared.logging.logger import get_logger

log = get_logger("shared.config.credentials")

DEFAULT_CONFIG_PATH = Path("config.json")


class ConfigError(RuntimeError):
    """Raised when the credential file cannot be used."""


@dataclass(frozen=True)
class ChatConfig:
    token: str

    def __repr__(self) -> str:
        return "ChatConfig(token='***')"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found at {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"{path.name}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: root JSON value must be an object")

    return data


def load_config(path: Union[str, Path, None] = None) -> ChatConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    data = _load_json(config_path)

    token = data.get("token")
    if not isinstance(token, str):
        raise ConfigError(f"{config_path.name}: 'token' must be a string")

    token = token.strip()
    if not token:
        raise ConfigError(f"{config_path.name}: 'token' is empty")

    log.debug(f"Loaded credential from {config_path}")
    return ChatConfig(token=token)
