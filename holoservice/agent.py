"""
Agent identity for the local operator.

Ed25519 keys (PyNaCl / libsodium). An agent is persisted as two files in a
directory: the display identity (``agent.txt``, written verbatim) and the
hex-encoded signing seed (``priv.key``, owner read/write only).

Usage:
    from holoservice.agent import new_agent, save_agent, load_agent

    agent = new_agent("Fred Flintstone <fred@flintstone.com>")
    save_agent(root, agent)
    same = load_agent(root)
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Union

from nacl.encoding import HexEncoder
from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from .config import AGENT_FILE_NAME, PRIV_KEY_FILE_NAME
from .errors import AgentLoadFailure

logger = logging.getLogger(__name__)


# =============================================================================
# AGENT IDENTITY
# =============================================================================

class AgentIdentity:
    """A display identity ("Name <email>") bound to a signing key."""

    def __init__(self, identity: str, signing_key: SigningKey):
        identity = (identity or "").strip()
        if not identity:
            raise ValueError("agent identity must not be empty")
        self._identity = identity
        self._signing_key = signing_key

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def signing_key(self) -> SigningKey:
        return self._signing_key

    @property
    def verify_key(self) -> VerifyKey:
        return self._signing_key.verify_key

    @property
    def pub_key(self) -> bytes:
        return bytes(self._signing_key.verify_key)

    @property
    def priv_key(self) -> bytes:
        return bytes(self._signing_key)

    def node_id(self) -> bytes:
        """Peer identifier derived from the public key."""
        return hashlib.sha256(self.pub_key).digest()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AgentIdentity):
            return NotImplemented
        return self._identity == other._identity and self.priv_key == other.priv_key

    def __hash__(self) -> int:
        return hash((self._identity, self.pub_key))

    def __repr__(self) -> str:
        return f"AgentIdentity({self._identity!r}, pub={self.pub_key.hex()[:16]}...)"


def new_agent(identity: str) -> AgentIdentity:
    return AgentIdentity(identity, SigningKey.generate())


# =============================================================================
# PERSISTENCE
# =============================================================================

def agent_files_exist(path: Union[str, Path]) -> bool:
    root = Path(path)
    return (root / AGENT_FILE_NAME).is_file() and (root / PRIV_KEY_FILE_NAME).is_file()


def save_agent(path: Union[str, Path], agent: AgentIdentity) -> None:
    root = Path(path)
    root.mkdir(parents=True, exist_ok=True)
    (root / AGENT_FILE_NAME).write_text(agent.identity, encoding="utf-8")
    key_file = root / PRIV_KEY_FILE_NAME
    key_file.write_bytes(agent.signing_key.encode(encoder=HexEncoder))
    key_file.chmod(0o600)  # Owner read/write only


def load_signing_key(path: Union[str, Path]) -> SigningKey:
    """Read the key material alone, without the display identity."""
    root = Path(path)
    key_file = root / PRIV_KEY_FILE_NAME
    try:
        key_hex = key_file.read_bytes().strip()
    except OSError as exc:
        raise AgentLoadFailure(root, f"{key_file.name}: {exc.strerror or exc}") from exc
    try:
        return SigningKey(key_hex, encoder=HexEncoder)
    except (CryptoError, ValueError, TypeError) as exc:
        raise AgentLoadFailure(root, f"{key_file.name}: malformed key material") from exc


def load_agent(path: Union[str, Path]) -> AgentIdentity:
    root = Path(path)
    identity_file = root / AGENT_FILE_NAME

    try:
        identity = identity_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise AgentLoadFailure(root, f"{identity_file.name}: {exc.strerror or exc}") from exc
    signing_key = load_signing_key(root)
    try:
        agent = AgentIdentity(identity, signing_key)
    except ValueError as exc:
        raise AgentLoadFailure(root, f"{identity_file.name}: {exc}") from exc
    logger.debug("loaded agent %s from %s", agent.identity, root)
    return agent
