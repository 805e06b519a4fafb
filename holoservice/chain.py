"""
ChainInstance: the in-memory view of one installed application.

The instance directory is the source of truth; a ChainInstance is a cache
filled in by Service.load. Its Encoding is chosen once, when it is built,
and is used for both the DNA descriptor and the runtime config file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .agent import AgentIdentity
from .config import (
    CHAIN_DATA_DIR,
    CHAIN_DNA_DIR,
    CHAIN_TEST_DIR,
    CHAIN_UI_DIR,
    CONFIG_FILE_NAME,
    DNA_FILE_NAME,
    SCENARIO_CONFIG_FILE,
)
from .dna import DNA, dna_hash, read_dna
from .encoding import Encoding
from .fsutil import atomic_write_text
from .logs import build_loggers
from .resolver import ChainConfig
from .store import ChainStore


@dataclass
class ChainInstance:
    root_path: Path
    encoding: Encoding
    dna: Optional[DNA] = None
    config: Optional[ChainConfig] = None
    agent: Optional[AgentIdentity] = None
    node_id: bytes = b""
    node_id_str: str = ""
    dna_hash: str = ""
    loggers: Dict[str, logging.Logger] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.root_path = Path(self.root_path)

    # -- layout ---------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.root_path.name

    @property
    def encoding_format(self) -> str:
        return self.encoding.name

    def dna_path(self) -> Path:
        return self.root_path / CHAIN_DNA_DIR

    def ui_path(self) -> Path:
        return self.root_path / CHAIN_UI_DIR

    def test_path(self) -> Path:
        return self.root_path / CHAIN_TEST_DIR

    def db_path(self) -> Path:
        return self.root_path / CHAIN_DATA_DIR

    def dna_file(self) -> Path:
        return self.dna_path() / self.encoding.filename(DNA_FILE_NAME)

    def config_file(self) -> Path:
        return self.root_path / self.encoding.filename(CONFIG_FILE_NAME)

    @property
    def store(self) -> ChainStore:
        return ChainStore(self.db_path())

    # -- identity -------------------------------------------------------------

    def set_agent(self, agent: AgentIdentity) -> None:
        self.agent = agent
        self.node_id = agent.node_id()
        self.node_id_str = self.node_id.hex()

    # -- DNA & config ---------------------------------------------------------

    def read_dna(self) -> DNA:
        self.dna = read_dna(self.dna_file(), self.encoding)
        return self.dna

    def save_dna(self) -> None:
        if self.dna is None:
            raise ValueError(f"{self.name}: no DNA to save")
        atomic_write_text(self.dna_file(), self.encoding.dumps(self.dna.to_dict()))

    def read_config(self) -> Optional[ChainConfig]:
        path = self.config_file()
        if not path.is_file():
            return None
        raw = self.encoding.read(path)
        try:
            return ChainConfig.from_dict(raw)
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc

    def save_config(self) -> None:
        if self.config is None:
            raise ValueError(f"{self.name}: no config to save")
        atomic_write_text(self.config_file(), self.encoding.dumps(self.config.to_dict()))

    def compute_dna_hash(self) -> str:
        if self.dna is None:
            self.read_dna()
        return dna_hash(self.dna, self.dna_path())

    def init_store(self) -> None:
        self.store.init()

    def is_generated(self) -> bool:
        return bool(self.dna_hash)

    def setup_loggers(self, stream: Optional[TextIO] = None) -> Dict[str, logging.Logger]:
        if self.config is None:
            raise ValueError(f"{self.name}: config not resolved")
        self.loggers = build_loggers(f"holoservice.chain.{self.name}", self.config, stream)
        return self.loggers

    # -- tests ----------------------------------------------------------------

    def test_scenarios(self) -> List[str]:
        test_dir = self.test_path()
        if not test_dir.is_dir():
            return []
        return sorted(p.name for p in test_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    def scenario_roles(self, scenario: str) -> List[str]:
        scenario_dir = self.test_path() / scenario
        if not scenario_dir.is_dir():
            raise FileNotFoundError(f"no test scenario {scenario!r} in {self.test_path()}")
        return sorted(
            p.stem for p in scenario_dir.glob("*.json")
            if p.stem != SCENARIO_CONFIG_FILE
        )

    def load_test_sets(self) -> Dict[str, Any]:
        test_dir = self.test_path()
        out: Dict[str, Any] = {}
        if not test_dir.is_dir():
            return out
        for path in sorted(test_dir.glob("*.json")):
            try:
                out[path.stem] = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}: invalid test set: {exc}") from exc
        return out
