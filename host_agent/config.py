"""
Config
======

The agent reads a flat JSON document:

    {
        "Ip":    "<controller host:port>",
        "Token": "<agent token>"
    }

If the file does not exist a default one is written and ConfigCreatedError
is raised: the operator fills in real values and starts the agent again.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigCreatedError, ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")

DEFAULT_CONFIG = {
    "Ip":    "127.0.0.1:8080",
    "Token": "your_token_here",
}


@dataclass(frozen=True)
class AgentConfig:
    ip:    str
    token: str

    @classmethod
    def from_dict(cls, raw: dict) -> "AgentConfig":
        values = {}
        for key in ("Ip", "Token"):
            value = raw.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"'{key}' must be a non-empty string")
            values[key] = value.strip()
        return cls(ip=values["Ip"], token=values["Token"])


def load_config(path: Path) -> AgentConfig:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return AgentConfig.from_dict(raw)


def save_config(path: Path, cfg: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent="\t"), encoding="utf-8")


def ensure_config(path: Path = DEFAULT_CONFIG_PATH) -> AgentConfig:
    """Load the config, or write the default one and raise ConfigCreatedError."""
    if not path.exists():
        try:
            save_config(path, DEFAULT_CONFIG)
        except OSError as e:
            raise ConfigError(f"cannot write default config to {path}: {e}") from e
        log.info(f"[config] Wrote default config to {path}")
        raise ConfigCreatedError(
            f"Config file not found, created `{path}` with default values. "
            f"Set Ip and Token, then start the agent again."
        )
    return load_config(path)
