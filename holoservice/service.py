"""
holoservice Service

Registry of installed chains under one root directory. The root holds the
operator's agent identity and the persisted ServiceConfig; each immediate
subdirectory is one chain instance.

Usage:
    from holoservice.service import init, load_service, DBPolicy
    from holoservice.lineage import fork_for

    svc = init(root, "Fred Flintstone <fred@flintstone.com>")
    svc.gen_dev(root / "mychain", "json", DBPolicy.INITIALIZE)
    svc.clone(root / "mychain", root / "myfork", svc.default_agent,
              fork_for(svc.default_agent), DBPolicy.SKIP)
    print(svc.list_chains())

Mutating operations assume the caller serializes access to the root.
"""

from __future__ import annotations

import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from .agent import (
    AgentIdentity,
    agent_files_exist,
    load_agent,
    load_signing_key,
    new_agent,
    save_agent,
)
from .chain import ChainInstance
from .config import (
    AGENT_FILE_NAME,
    CHAIN_DATA_DIR,
    CHAIN_DNA_DIR,
    DNA_FILE_NAME,
    PRIV_KEY_FILE_NAME,
    SYS_FILE_NAME,
    ServiceConfig,
    default_service_config,
)
from .dna import read_dna, write_dna
from .encoding import ENCODINGS, TOML, Encoding, detect_encoding, get_encoding
from .errors import (
    AlreadyInitialized,
    ConfigInvalid,
    HoloServiceError,
    InconsistentChain,
    NoDNAFile,
    NotInitialized,
)
from .fsutil import atomic_write_text, copy_tree, is_hidden, staged_directory
from .lineage import LineagePolicy, fork_for
from .resolver import apply_overrides, make_config
from .scaffold import ScaffoldSource, ScaffoldTemplate, materialize, parse_scaffold
from .store import ChainStore
from .templates import DEV_TEMPLATE_SCAFFOLD

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

NOT_STARTED = "<not-started>"
NO_CHAINS = "no installed chains"
LIST_HEADER = "installed holochains: "


class DBPolicy(Enum):
    INITIALIZE = "initialize"
    SKIP = "skip"


# =============================================================================
# ROOT BOOTSTRAP
# =============================================================================

def is_initialized(path: PathLike) -> bool:
    """True when path carries the service marker files. No reads, no writes."""
    root = Path(path)
    return root.is_dir() and (root / SYS_FILE_NAME).is_file() and (root / AGENT_FILE_NAME).is_file()


def init(path: PathLike, identity: str, overrides: Optional[Mapping[str, str]] = None) -> "Service":
    """
    Initialize a Service root: agent identity plus default settings.

    An existing priv.key in the directory is kept (with the given identity);
    otherwise a fresh key pair is generated. A priv.key that cannot be read
    raises AgentLoadFailure and is left untouched. system.conf is written
    last.
    """
    root = Path(path)
    if is_initialized(root):
        raise AlreadyInitialized(root)
    root.mkdir(parents=True, exist_ok=True)

    if (root / PRIV_KEY_FILE_NAME).is_file():
        agent = AgentIdentity(identity, load_signing_key(root))
    else:
        agent = new_agent(identity)
    save_agent(root, agent)

    settings = default_service_config()
    atomic_write_text(root / SYS_FILE_NAME, TOML.dumps(settings.to_dict()))
    logger.info("initialized service at %s for %s", root, agent.identity)
    return Service(root, settings, agent, overrides)


def _read_settings(root: Path) -> ServiceConfig:
    path = root / SYS_FILE_NAME
    try:
        raw = TOML.read(path)
    except (OSError, tomllib.TOMLDecodeError, ValueError) as exc:
        raise ConfigInvalid(f"{SYS_FILE_NAME}: {exc}") from exc
    settings = ServiceConfig.from_dict(raw)
    settings.validate()
    return settings


def load_service(path: PathLike, overrides: Optional[Mapping[str, str]] = None) -> "Service":
    root = Path(path)
    if not is_initialized(root):
        raise NotInitialized(root)
    settings = _read_settings(root)
    agent = load_agent(root)
    return Service(root, settings, agent, overrides)


# =============================================================================
# SERVICE
# =============================================================================

class Service:
    """One installed-applications root directory and its chains."""

    def __init__(
        self,
        path: PathLike,
        settings: ServiceConfig,
        default_agent: AgentIdentity,
        overrides: Optional[Mapping[str, str]] = None,
    ):
        self.path = Path(path)
        self.settings = settings
        self.default_agent = default_agent
        self.overrides: Dict[str, str] = dict(overrides or {})
        self.last_scan_errors: Dict[str, Exception] = {}

    def __repr__(self) -> str:
        return f"Service({str(self.path)!r}, agent={self.default_agent.identity!r})"

    # -- enumeration ----------------------------------------------------------

    def _detect(self, root: Path) -> Encoding:
        dna_dir = root / CHAIN_DNA_DIR
        enc = detect_encoding(dna_dir, DNA_FILE_NAME)
        if enc is None:
            raise NoDNAFile(dna_dir)
        return enc

    def is_configured(self, name: str) -> str:
        """Return the DNA encoding of chain `name`, or raise NoDNAFile."""
        return self._detect(self.path / name).name

    def scan_chains(self) -> Tuple[Dict[str, ChainInstance], Dict[str, Exception]]:
        """
        Load every configured chain under the root.

        Directories without a DNA file are not chains and are skipped
        silently. Chains that fail to load are left out of the first map and
        reported in the second, keyed by directory name.
        """
        chains: Dict[str, ChainInstance] = {}
        errors: Dict[str, Exception] = {}
        for child in sorted(self.path.iterdir()):
            if not child.is_dir() or is_hidden(child):
                continue
            try:
                chains[child.name] = self.load(child.name)
            except NoDNAFile:
                logger.debug("skipping unconfigured directory %s", child)
            except (HoloServiceError, OSError, ValueError) as exc:
                logger.warning("skipping chain %s: %s", child.name, exc)
                errors[child.name] = exc
        return chains, errors

    def configured_chains(self) -> Dict[str, ChainInstance]:
        chains, self.last_scan_errors = self.scan_chains()
        return chains

    def list_chains(self) -> str:
        chains = self.configured_chains()
        if not chains:
            return NO_CHAINS
        listing = LIST_HEADER
        for name in sorted(chains):
            listing += f"    {name} {chains[name].dna_hash or NOT_STARTED}\n"
        return listing

    # -- loading --------------------------------------------------------------

    def load(self, name: str) -> ChainInstance:
        return self.load_as(name, self.is_configured(name))

    def load_as(self, name: str, fmt: str) -> ChainInstance:
        """Load chain `name` assuming its descriptor is in format fmt."""
        return self._load_path(self.path / name, get_encoding(fmt))

    def _load_path(self, root: Path, enc: Encoding) -> ChainInstance:
        inst = ChainInstance(root, enc)
        inst.read_dna()

        agent = load_agent(root) if agent_files_exist(root) else self.default_agent
        inst.set_agent(agent)

        config = inst.read_config()
        if config is None:
            make_config(inst, self, self.overrides)
        else:
            inst.config = apply_overrides(config, self.overrides)

        inst.dna_hash = inst.store.dna_hash() or ""
        return inst

    def gen_chain(self, name: str) -> ChainInstance:
        """
        Bring chain `name` up: open (initializing if needed) its store and
        record the DNA hash. A recorded hash that no longer matches the DNA
        on disk is an error.
        """
        inst = self.load(name)
        if not inst.store.exists():
            inst.init_store()

        computed = inst.compute_dna_hash()
        recorded = inst.store.dna_hash()
        if recorded and recorded != computed:
            raise InconsistentChain(
                f"{name}: DNA on disk hashes to {computed} but {recorded} was recorded"
            )
        if not recorded:
            inst.store.record_dna_hash(computed)
        inst.dna_hash = computed
        inst.setup_loggers()
        logger.info("chain %s generated with DNA hash %s", name, computed)
        return inst

    # -- generation -----------------------------------------------------------

    def gen_dev(self, root: PathLike, fmt: str = "json", db_policy: DBPolicy = DBPolicy.INITIALIZE) -> ChainInstance:
        """Create a development chain at root from the built-in dev template."""
        root = Path(root)
        enc = get_encoding(fmt)
        template = parse_scaffold(DEV_TEMPLATE_SCAFFOLD)

        with staged_directory(root) as staging:
            staged = ChainInstance(staging, enc)
            save_agent(staging, self.default_agent)
            staged.set_agent(self.default_agent)
            make_config(staged, self)
            staged.save_config()
            if db_policy is DBPolicy.INITIALIZE:
                staged.init_store()
            materialize(template, staging, root.name, enc)

        logger.info("generated dev chain %s (%s)", root, enc.name)
        return self._load_path(root, enc)

    def save_scaffold(
        self,
        source: ScaffoldSource,
        root: PathLike,
        app_name: str,
        fmt: str = "json",
        overwrite: bool = False,
    ) -> ScaffoldTemplate:
        """
        Write a scaffold template out as a new chain tree at root. The new
        DNA starts its own lineage with the default agent as progenitor.
        """
        root = Path(root)
        enc = get_encoding(fmt)
        template = parse_scaffold(source)
        progenitor = fork_for(self.default_agent).new_progenitor

        with staged_directory(root, overwrite=overwrite) as staging:
            materialize(template, staging, app_name, enc, progenitor=progenitor)

        template.dna.name = app_name
        logger.info("saved scaffold %s as %s (%s)", app_name, root, enc.name)
        return template

    # -- cloning --------------------------------------------------------------

    def clone(
        self,
        orig: PathLike,
        root: PathLike,
        agent: AgentIdentity,
        policy: LineagePolicy,
        db_policy: DBPolicy = DBPolicy.INITIALIZE,
    ) -> ChainInstance:
        """
        Copy chain orig to root and rewrite its lineage per policy. agent
        becomes the operating agent of the copy in either case. The source
        store is never copied.
        """
        orig = Path(orig)
        root = Path(root)
        enc = self._detect(orig)
        source_dna = read_dna(orig / CHAIN_DNA_DIR / enc.filename(DNA_FILE_NAME), enc)

        with staged_directory(root) as staging:
            copy_tree(orig, staging, skip={CHAIN_DATA_DIR, AGENT_FILE_NAME, PRIV_KEY_FILE_NAME})
            for known in ENCODINGS.values():
                (staging / CHAIN_DNA_DIR / known.filename(DNA_FILE_NAME)).unlink(missing_ok=True)

            save_agent(staging, agent)
            if db_policy is DBPolicy.INITIALIZE:
                ChainStore(staging / CHAIN_DATA_DIR).init()
            write_dna(
                staging / CHAIN_DNA_DIR / enc.filename(DNA_FILE_NAME),
                policy.apply(source_dna, root.name),
                enc,
            )

        logger.info("cloned %s -> %s (%s)", orig, root, type(policy).__name__.lower())
        return self._load_path(root, enc)
