"""
Clone tests: fork (new lineage) and join (existing lineage).
"""

import pytest

from holoservice.agent import load_agent, new_agent
from holoservice.errors import AlreadyExists, CopyFailure, NoDNAFile
from holoservice.fsutil import copy_tree
from holoservice.lineage import Join, fork_for
from holoservice.service import DBPolicy
from holoservice.templates import SAMPLE_PROGENITOR_IDENTITY, SAMPLE_PROGENITOR_PUB_KEY

WILMA = "Wilma Flintstone <wilma@flintstone.com>"


def _same_file(a, b) -> bool:
    return a.read_bytes() == b.read_bytes()


class TestFork:

    def test_clone_with_new_uuid(self, service, chain):
        orig = service.path / "test"
        root = service.path / "test2"
        agent = load_agent(service.path)

        service.clone(orig, root, agent, fork_for(agent), DBPolicy.INITIALIZE)
        assert (root / "db").is_dir()
        assert (root / "db" / "chain.db").is_file()

        h = service.load("test2")
        assert h.dna.name == "test2"
        assert h.dna.uuid != chain.dna.uuid

        assert h.agent.identity == agent.identity
        assert h.agent.priv_key == agent.priv_key
        assert h.agent.pub_key == agent.pub_key

        assert h.root_path == root
        assert h.ui_path() == root / "ui"
        assert h.dna_path() == root / "dna"
        assert h.db_path() == root / "db"

        assert _same_file(orig / "dna" / "zySampleZome" / "zySampleZome.zy", h.dna_path() / "zySampleZome" / "zySampleZome.zy")
        assert _same_file(orig / "dna" / "zySampleZome" / "profile.json", h.dna_path() / "zySampleZome" / "profile.json")
        assert _same_file(orig / "dna" / "properties_schema.json", h.dna_path() / "properties_schema.json")
        assert _same_file(orig / "ui" / "index.html", h.ui_path() / "index.html")
        assert _same_file(orig / "config.json", root / "config.json")
        assert _same_file(orig / "test" / "testSet1.json", h.test_path() / "testSet1.json")

        assert h.dna.progenitor.identity == "Herbert <h@bert.com>"
        assert h.dna.progenitor.pub_key == agent.pub_key

    def test_fork_by_other_agent(self, service, chain):
        other = new_agent(WILMA)
        h = service.clone(chain.root_path, service.path / "fork", other, fork_for(other))
        assert h.dna.progenitor.identity == WILMA
        assert h.dna.progenitor.pub_key == other.pub_key
        assert h.agent.pub_key == other.pub_key
        assert h.node_id == other.node_id()

    def test_fork_starts_unstarted(self, service, chain):
        service.gen_chain("test")
        h = service.clone(chain.root_path, service.path / "fork", service.default_agent, fork_for(service.default_agent))
        assert h.dna_hash == ""
        assert service.gen_chain("fork").dna_hash != service.load("test").dna_hash


class TestJoin:

    def test_clone_with_same_uuid(self, service, chain):
        orig = service.path / "test"
        root = service.path / "test2"
        agent = load_agent(service.path)

        service.clone(orig, root, agent, Join(), DBPolicy.INITIALIZE)
        assert (root / "db" / "chain.db").is_file()

        h = service.load("test2")
        assert h.dna.name == "test"
        assert h.dna.uuid == chain.dna.uuid
        assert h.agent.identity == agent.identity
        assert h.agent.priv_key == agent.priv_key
        assert h.agent.pub_key == agent.pub_key

        assert _same_file(orig / "dna" / "zySampleZome" / "zySampleZome.zy", root / "dna" / "zySampleZome" / "zySampleZome.zy")
        assert (h.ui_path() / "index.html").is_file()
        assert (h.dna_path() / "zySampleZome" / "profile.json").is_file()
        assert (h.dna_path() / "properties_schema.json").is_file()
        assert (root / "config.json").is_file()

        assert h.dna.progenitor.identity == SAMPLE_PROGENITOR_IDENTITY
        assert h.dna.progenitor.pub_key == SAMPLE_PROGENITOR_PUB_KEY

    def test_join_keeps_progenitor_distinct_from_operator(self, service, chain):
        other = new_agent(WILMA)
        h = service.clone(chain.root_path, service.path / "joined", other, Join())
        assert h.dna.progenitor == chain.dna.progenitor
        assert h.agent.identity == WILMA
        assert h.agent.pub_key == other.pub_key
        assert h.agent.pub_key != h.dna.progenitor.pub_key

        reloaded = service.load("joined")
        assert reloaded.agent.pub_key == other.pub_key
        assert reloaded.node_id == h.node_id

    def test_join_shares_dna_hash(self, service, chain):
        joined = service.clone(chain.root_path, service.path / "joined", service.default_agent, Join())
        assert service.gen_chain("joined").dna_hash == service.gen_chain("test").dna_hash
        assert joined.dna.uuid == chain.dna.uuid

    def test_join_preserves_encoding(self, service):
        src = service.gen_dev(service.path / "tomlchain", "toml")
        h = service.clone(src.root_path, service.path / "joined", service.default_agent, Join())
        assert h.encoding_format == "toml"
        assert (h.dna_path() / "dna.toml").is_file()
        assert h.dna.uuid == src.dna.uuid


class TestCloneFailures:

    def test_clone_no_db(self, service, chain):
        root = service.path / "test2"
        agent = load_agent(service.path)
        service.clone(chain.root_path, root, agent, fork_for(agent), DBPolicy.SKIP)
        assert not (root / "db").exists()
        assert (root / "dna" / "zySampleZome" / "profile.json").is_file()

    def test_clone_onto_existing(self, service, chain):
        other = service.gen_dev(service.path / "other")
        before = pytest.read_tree(other.root_path)
        with pytest.raises(AlreadyExists):
            service.clone(chain.root_path, other.root_path, service.default_agent, Join())
        assert pytest.read_tree(other.root_path) == before

    def test_clone_unconfigured_source(self, service):
        (service.path / "empty").mkdir()
        with pytest.raises(NoDNAFile):
            service.clone(service.path / "empty", service.path / "copy", service.default_agent, Join())
        assert not (service.path / "copy").exists()

    def test_copy_failure_leaves_nothing(self, service, chain, monkeypatch):
        import holoservice.service as service_mod

        def broken_copy(src, dst, skip=()):
            (dst / "dna").mkdir(parents=True, exist_ok=True)
            raise CopyFailure(src, dst, OSError("device unplugged"))

        monkeypatch.setattr(service_mod, "copy_tree", broken_copy)
        with pytest.raises(CopyFailure) as exc_info:
            service.clone(chain.root_path, service.path / "test2", service.default_agent, Join())
        assert "device unplugged" in str(exc_info.value)
        assert not (service.path / "test2").exists()
        assert pytest.hidden_entries(service.path) == []
        assert sorted(service.configured_chains()) == ["test"]

    def test_copy_tree_wraps_os_errors(self, tmp_path):
        with pytest.raises(CopyFailure) as exc_info:
            copy_tree(tmp_path / "missing", tmp_path / "dst")
        assert exc_info.value.src == tmp_path / "missing"
        assert exc_info.value.dst == tmp_path / "dst"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_copy_tree_skips_top_level_only(self, tmp_path):
        src = tmp_path / "src"
        (src / "db").mkdir(parents=True)
        (src / "db" / "chain.db").write_text("x")
        (src / "dna" / "db").mkdir(parents=True)
        (src / "dna" / "db" / "keep.json").write_text("{}")
        copy_tree(src, tmp_path / "dst", skip={"db"})
        assert not (tmp_path / "dst" / "db").exists()
        assert (tmp_path / "dst" / "dna" / "db" / "keep.json").is_file()
