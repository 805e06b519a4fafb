"""Per-chain logger channels built from LoggerConfig."""

from __future__ import annotations

import logging
import sys
from typing import Dict, Optional, TextIO

from .resolver import ChainConfig, LoggerConfig


class PrefixFormatter(logging.Formatter):
    def __init__(self, fmt: str, prefix: str = ""):
        super().__init__(fmt)
        self.prefix = prefix

    def format(self, record: logging.LogRecord) -> str:
        return f"{self.prefix}{super().format(record)}"


def build_logger(name: str, cfg: LoggerConfig, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure logger `name` from cfg. Existing handlers on it are replaced,
    so rebuilding after a config reload does not duplicate output.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = False
    if not cfg.enabled:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(PrefixFormatter(cfg.format, cfg.prefix))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger


def build_loggers(namespace: str, config: ChainConfig, stream: Optional[TextIO] = None) -> Dict[str, logging.Logger]:
    return {
        channel: build_logger(f"{namespace}.{channel}", cfg, stream)
        for channel, cfg in config.loggers.items()
    }
