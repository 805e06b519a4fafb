"""
Serializers for instance descriptors.

A chain picks exactly one Encoding when it is constructed; the DNA
descriptor and the runtime config are both read and written through it.
Scaffold auxiliary assets (schemas, tests, scenarios) are always JSON and
do not go through this module.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w
import yaml

from .errors import UnknownEncoding


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value if v is not None]
    return value


class Encoding:
    name: str = ""

    @property
    def suffix(self) -> str:
        return f".{self.name}"

    def dumps(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def loads(self, text: str) -> Dict[str, Any]:
        raise NotImplementedError

    def filename(self, stem: str) -> str:
        return f"{stem}{self.suffix}"

    def read(self, path: Path) -> Dict[str, Any]:
        text = path.read_text(encoding="utf-8")
        try:
            raw = self.loads(text)
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        return raw

    def write(self, path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dumps(data), encoding="utf-8")

    def __repr__(self) -> str:
        return f"<Encoding {self.name}>"


class JsonEncoding(Encoding):
    name = "json"

    def dumps(self, data: Dict[str, Any]) -> str:
        return json.dumps(data, indent=2) + "\n"

    def loads(self, text: str) -> Dict[str, Any]:
        return json.loads(text)


class TomlEncoding(Encoding):
    name = "toml"

    def dumps(self, data: Dict[str, Any]) -> str:
        # TOML has no null
        return tomli_w.dumps(_drop_none(data))

    def loads(self, text: str) -> Dict[str, Any]:
        return tomllib.loads(text)


class YamlEncoding(Encoding):
    name = "yaml"

    def dumps(self, data: Dict[str, Any]) -> str:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    def loads(self, text: str) -> Dict[str, Any]:
        try:
            return yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid YAML: {exc}") from exc


JSON = JsonEncoding()
TOML = TomlEncoding()
YAML = YamlEncoding()

# Probe order for detect_encoding
ENCODINGS: Dict[str, Encoding] = {
    JSON.name: JSON,
    TOML.name: TOML,
    YAML.name: YAML,
}


def get_encoding(name: str) -> Encoding:
    try:
        return ENCODINGS[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownEncoding(str(name)) from None


def detect_encoding(directory: Path, stem: str) -> Optional[Encoding]:
    """Return the encoding of the first `<stem>.<fmt>` file found in directory."""
    for enc in ENCODINGS.values():
        if (directory / enc.filename(stem)).is_file():
            return enc
    return None
