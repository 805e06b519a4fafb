#!/usr/bin/env python3
"""
Agent identity tests

- Key generation
- Persistence of the display identity and key material
"""

import stat

import pytest
from nacl.encoding import HexEncoder

from holoservice.agent import (
    agent_files_exist,
    load_agent,
    load_signing_key,
    new_agent,
    save_agent,
)
from holoservice.config import AGENT_FILE_NAME, PRIV_KEY_FILE_NAME
from holoservice.errors import AgentLoadFailure

FRED = "Fred Flintstone <fred@flintstone.com>"


class TestKeyGeneration:

    def test_new_agents_are_unique(self):
        keys = {new_agent(FRED).pub_key for _ in range(5)}
        assert len(keys) == 5


class TestAgentIdentity:

    def test_identity_is_stripped(self):
        assert new_agent(f"  {FRED}\n").identity == FRED

    def test_empty_identity_rejected(self):
        with pytest.raises(ValueError):
            new_agent("   ")

    def test_node_id_follows_public_key(self):
        agent = new_agent(FRED)
        assert agent.node_id() == agent.node_id()
        assert len(agent.node_id()) == 32
        assert agent.node_id() != new_agent(FRED).node_id()


class TestPersistence:

    def test_save_and_load_roundtrip(self, tmp_path):
        agent = new_agent(FRED)
        save_agent(tmp_path, agent)
        loaded = load_agent(tmp_path)
        assert loaded == agent
        assert loaded.identity == FRED
        assert loaded.pub_key == agent.pub_key
        assert loaded.priv_key == agent.priv_key

    def test_identity_file_is_verbatim(self, tmp_path):
        save_agent(tmp_path, new_agent(FRED))
        assert (tmp_path / AGENT_FILE_NAME).read_text() == FRED

    def test_key_file_owner_only(self, tmp_path):
        save_agent(tmp_path, new_agent(FRED))
        mode = stat.S_IMODE((tmp_path / PRIV_KEY_FILE_NAME).stat().st_mode)
        assert mode == 0o600

    def test_agent_files_exist(self, tmp_path):
        assert not agent_files_exist(tmp_path)
        save_agent(tmp_path, new_agent(FRED))
        assert agent_files_exist(tmp_path)

    def test_load_missing_identity(self, tmp_path):
        with pytest.raises(AgentLoadFailure) as exc_info:
            load_agent(tmp_path)
        assert AGENT_FILE_NAME in str(exc_info.value)

    def test_load_missing_key(self, tmp_path):
        (tmp_path / AGENT_FILE_NAME).write_text(FRED)
        with pytest.raises(AgentLoadFailure) as exc_info:
            load_agent(tmp_path)
        assert PRIV_KEY_FILE_NAME in str(exc_info.value)

    def test_load_malformed_key(self, tmp_path):
        (tmp_path / AGENT_FILE_NAME).write_text(FRED)
        (tmp_path / PRIV_KEY_FILE_NAME).write_text("not hex at all")
        with pytest.raises(AgentLoadFailure, match="malformed key material"):
            load_agent(tmp_path)

    def test_signing_key_loads_without_identity(self, tmp_path):
        agent = new_agent(FRED)
        save_agent(tmp_path, agent)
        (tmp_path / AGENT_FILE_NAME).unlink()
        assert bytes(load_signing_key(tmp_path)) == agent.priv_key

    def test_key_file_is_hex_seed(self, tmp_path):
        agent = new_agent(FRED)
        save_agent(tmp_path, agent)
        assert (tmp_path / PRIV_KEY_FILE_NAME).read_bytes() == agent.signing_key.encode(encoder=HexEncoder)
