"""
Runtime configuration for a chain instance.

Resolution is a pure function of three layers, low to high precedence:

1. built-in defaults (DEFAULT_PORT, logger formats)
2. the Service's persisted settings (system.conf)
3. recognized overrides, a mapping such as {"PORT": "12345"}

Recognized override keys:
- PORT        -> numeric port
- ENABLEMDNS  -> boolean
- LOGPREFIX   -> prefix applied to every logger channel
- BOOTSTRAP   -> bootstrap server; "_" disables bootstrap (empty value)

Only the CLI reads the process environment, via env_overrides().
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .config import BOOTSTRAP_DISABLED, DEFAULT_PORT, ENV_OVERRIDE_PREFIX
from .errors import EnvOverrideParseError

if TYPE_CHECKING:
    from .chain import ChainInstance
    from .service import Service

OVERRIDE_PORT = "PORT"
OVERRIDE_ENABLEMDNS = "ENABLEMDNS"
OVERRIDE_LOGPREFIX = "LOGPREFIX"
OVERRIDE_BOOTSTRAP = "BOOTSTRAP"

RECOGNIZED_OVERRIDES = (OVERRIDE_PORT, OVERRIDE_ENABLEMDNS, OVERRIDE_LOGPREFIX, OVERRIDE_BOOTSTRAP)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class LoggerConfig:
    format: str = "%(message)s"
    enabled: bool = True
    prefix: str = ""


def _default_loggers() -> Dict[str, LoggerConfig]:
    return {
        "app": LoggerConfig(format="%(message)s"),
        "dht": LoggerConfig(format="%(asctime)s DHT: %(message)s", enabled=False),
        "gossip": LoggerConfig(format="%(asctime)s Gossip: %(message)s", enabled=False),
        "test_passed": LoggerConfig(format="%(message)s"),
        "test_failed": LoggerConfig(format="%(message)s"),
        "test_info": LoggerConfig(format="%(message)s"),
    }


@dataclass
class ChainConfig:
    port: int = DEFAULT_PORT
    peer_mode_author: bool = False
    peer_mode_dht_node: bool = False
    bootstrap_server: str = ""
    enable_mdns: bool = False
    loggers: Dict[str, LoggerConfig] = field(default_factory=_default_loggers)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ChainConfig":
        """Build from a decoded config file. Raises ValueError naming the bad field."""
        loggers = _default_loggers()
        raw_loggers = raw.get("loggers") or {}
        if not isinstance(raw_loggers, Mapping):
            raise ValueError("loggers: expected a table of logger channels")
        for name, cfg in raw_loggers.items():
            if not isinstance(cfg, Mapping):
                raise ValueError(f"loggers.{name}: expected a table")
            loggers[name] = LoggerConfig(
                format=_typed(cfg, "format", str, "%(message)s", f"loggers.{name}."),
                enabled=_typed(cfg, "enabled", bool, True, f"loggers.{name}."),
                prefix=_typed(cfg, "prefix", str, "", f"loggers.{name}."),
            )

        port = raw.get("port", DEFAULT_PORT)
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise ValueError(f"port: expected a port number, got {port!r}")
        return cls(
            port=port,
            peer_mode_author=_typed(raw, "peer_mode_author", bool, False),
            peer_mode_dht_node=_typed(raw, "peer_mode_dht_node", bool, False),
            bootstrap_server=_typed(raw, "bootstrap_server", str, ""),
            enable_mdns=_typed(raw, "enable_mdns", bool, False),
            loggers=loggers,
        )


def _typed(raw: Mapping[str, Any], key: str, kind: type, default: Any, where: str = "") -> Any:
    value = raw.get(key, default)
    if not isinstance(value, kind):
        raise ValueError(f"{where}{key}: expected {kind.__name__}, got {value!r}")
    return value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    """Pick the HOLOCHAINCONFIG_* keys out of an environment mapping."""
    out: Dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith(ENV_OVERRIDE_PREFIX):
            out[key[len(ENV_OVERRIDE_PREFIX):]] = value
    return out


def apply_overrides(config: ChainConfig, overrides: Optional[Mapping[str, str]]) -> ChainConfig:
    """Apply recognized overrides to config in place and return it."""
    if not overrides:
        return config

    if OVERRIDE_PORT in overrides:
        raw = overrides[OVERRIDE_PORT]
        try:
            port = int(str(raw).strip())
        except ValueError:
            raise EnvOverrideParseError(OVERRIDE_PORT, raw, "port number") from None
        if not 0 <= port <= 65535:
            raise EnvOverrideParseError(OVERRIDE_PORT, raw, "port number")
        config.port = port

    if OVERRIDE_ENABLEMDNS in overrides:
        config.enable_mdns = _parse_bool(overrides[OVERRIDE_ENABLEMDNS])

    if OVERRIDE_LOGPREFIX in overrides:
        prefix = overrides[OVERRIDE_LOGPREFIX]
        for logger_cfg in config.loggers.values():
            logger_cfg.prefix = prefix

    if OVERRIDE_BOOTSTRAP in overrides:
        value = overrides[OVERRIDE_BOOTSTRAP]
        config.bootstrap_server = "" if value == BOOTSTRAP_DISABLED else value

    return config


def make_config(
    instance: "ChainInstance",
    service: "Service",
    overrides: Optional[Mapping[str, str]] = None,
) -> ChainConfig:
    """Build a fresh runtime config for instance and attach it."""
    settings = service.settings
    config = ChainConfig(
        port=DEFAULT_PORT,
        peer_mode_author=settings.default_peer_mode_author,
        peer_mode_dht_node=settings.default_peer_mode_dht_node,
        bootstrap_server=settings.default_bootstrap_server,
        enable_mdns=settings.default_enable_mdns,
    )
    apply_overrides(config, overrides)
    instance.config = config
    return config
