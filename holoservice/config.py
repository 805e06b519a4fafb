"""
holoservice configuration: on-disk names, defaults and the persisted
per-root ServiceConfig.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigInvalid

# --- Service root ---
DEFAULT_DIRECTORY_NAME = ".holochain"
HOLOPATH_ENV = "HOLOPATH"

AGENT_FILE_NAME = "agent.txt"
PRIV_KEY_FILE_NAME = "priv.key"
SYS_FILE_NAME = "system.conf"

# --- Instance layout ---
CHAIN_DNA_DIR = "dna"
CHAIN_UI_DIR = "ui"
CHAIN_TEST_DIR = "test"
CHAIN_DATA_DIR = "db"

DNA_FILE_NAME = "dna"
CONFIG_FILE_NAME = "config"
STORE_FILE_NAME = "chain.db"
PROPERTIES_SCHEMA_FILE = "properties_schema.json"
SCENARIO_CONFIG_FILE = "_config"

# --- Runtime defaults ---
DEFAULT_PORT = 6283
DEFAULT_BOOTSTRAP_SERVER = "bootstrap.holochain.net:10000"
DEFAULT_ENCODING = "json"

# --- Environment overrides ---
ENV_OVERRIDE_PREFIX = "HOLOCHAINCONFIG_"
BOOTSTRAP_DISABLED = "_"


def get_service_path() -> Path:
    raw = os.environ.get(HOLOPATH_ENV)
    return Path(raw).expanduser() if raw else Path.home() / DEFAULT_DIRECTORY_NAME


@dataclass
class ServiceConfig:
    """Defaults applied to every chain generated under a Service root."""
    default_peer_mode_dht_node: bool = False
    default_peer_mode_author: bool = False
    default_bootstrap_server: str = ""
    default_enable_mdns: bool = False

    def validate(self) -> None:
        if not (self.default_peer_mode_author or self.default_peer_mode_dht_node):
            raise ConfigInvalid(f"{SYS_FILE_NAME}: At least one peer mode must be set to true.")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ServiceConfig":
        if not isinstance(raw, dict):
            raise ConfigInvalid(f"{SYS_FILE_NAME}: expected a table of settings")
        values: Dict[str, Any] = {}
        for f in fields(cls):
            value = raw.get(f.name, f.default)
            if not isinstance(value, type(f.default)):
                raise ConfigInvalid(
                    f"{SYS_FILE_NAME}: {f.name} must be a {type(f.default).__name__}, got {value!r}"
                )
            values[f.name] = value
        return cls(**values)


def default_service_config() -> ServiceConfig:
    return ServiceConfig(
        default_peer_mode_dht_node=True,
        default_peer_mode_author=True,
        default_bootstrap_server=DEFAULT_BOOTSTRAP_SERVER,
        default_enable_mdns=False,
    )
