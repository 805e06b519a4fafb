from __future__ import annotations

from pathlib import Path

import pytest

from holoservice.encoding import JSON, TOML, YAML, detect_encoding, get_encoding
from holoservice.errors import UnknownEncoding


def test_get_encoding_is_case_insensitive() -> None:
    assert get_encoding("json") is JSON
    assert get_encoding("TOML") is TOML
    assert get_encoding(" yaml ") is YAML


def test_unknown_encoding_is_value_error() -> None:
    with pytest.raises(UnknownEncoding):
        get_encoding("xml")
    with pytest.raises(ValueError):
        get_encoding("xml")


@pytest.mark.parametrize("enc", [JSON, TOML, YAML])
def test_roundtrip_nested_mapping(enc) -> None:
    data = {
        "name": "test",
        "port": 6283,
        "flags": {"a": True, "b": False},
        "zomes": [{"name": "z1", "entries": []}, {"name": "z2", "entries": [{"name": "e"}]}],
    }
    assert enc.loads(enc.dumps(data)) == data


def test_toml_drops_nulls() -> None:
    assert TOML.loads(TOML.dumps({"a": None, "b": 1, "c": {"d": None}})) == {"b": 1, "c": {}}


def test_detect_encoding_probes_in_order(tmp_path: Path) -> None:
    assert detect_encoding(tmp_path, "dna") is None
    (tmp_path / "dna.toml").write_text('name = "x"\n')
    assert detect_encoding(tmp_path, "dna") is TOML
    (tmp_path / "dna.json").write_text('{"name": "x"}')
    assert detect_encoding(tmp_path, "dna") is JSON


def test_read_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError, match="expected a mapping"):
        JSON.read(path)


def test_malformed_yaml_is_value_error() -> None:
    with pytest.raises(ValueError, match="invalid YAML"):
        YAML.loads("name: [unclosed")


@pytest.mark.parametrize("enc, text", [(JSON, "{not json"), (TOML, "a = [1"), (YAML, "a: [1")])
def test_read_names_file_on_decode_error(tmp_path: Path, enc, text) -> None:
    path = tmp_path / enc.filename("dna")
    path.write_text(text)
    with pytest.raises(ValueError, match="dna"):
        enc.read(path)
