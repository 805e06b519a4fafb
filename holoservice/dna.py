"""
DNA descriptor: the header of a chain that names it, fixes its lineage
(UUID + progenitor) and lists its zomes.

Only the descriptor is inspected here. Zome code and entry schemas live in
files next to it and are referenced by name.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from .encoding import Encoding

DNA_VERSION = 1
DEFAULT_HASH_TYPE = "sha2-256"

SHARING_PUBLIC = "public"

DATA_FORMAT_JSON = "json"

RIBOSOME_ZYGO = "zygo"
RIBOSOME_JS = "js"

CODE_EXTENSIONS = {RIBOSOME_ZYGO: "zy", RIBOSOME_JS: "js"}


def new_uuid() -> str:
    return str(uuid.uuid4())


def code_file_name(zome_name: str, ribosome_type: str) -> str:
    ext = CODE_EXTENSIONS.get(ribosome_type, ribosome_type)
    return f"{zome_name}.{ext}"


class Progenitor(BaseModel):
    """Who originated the lineage. Not necessarily the operating agent."""
    model_config = ConfigDict(extra="forbid")

    identity: str = ""
    pub_key: bytes = b""

    @field_validator("pub_key", mode="before")
    @classmethod
    def _decode_pub_key(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return base64.b64decode(value.encode("ascii"), validate=True)
            except (binascii.Error, UnicodeEncodeError) as exc:
                raise ValueError("pub_key must be base64 text") from exc
        if isinstance(value, list):
            return bytes(value)
        return value

    @field_serializer("pub_key")
    def _encode_pub_key(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")


class DHTConfig(BaseModel):
    hash_type: str = DEFAULT_HASH_TYPE


class EntryDef(BaseModel):
    name: str
    data_format: str = DATA_FORMAT_JSON
    schema_file: Optional[str] = None
    sharing: str = SHARING_PUBLIC


class FunctionDef(BaseModel):
    name: str
    calling_type: str = "json"
    exposure: str = ""


class Zome(BaseModel):
    name: str
    description: str = ""
    ribosome_type: str = RIBOSOME_JS
    code_file: str = ""
    entries: List[EntryDef] = Field(default_factory=list)
    functions: List[FunctionDef] = Field(default_factory=list)

    def code_path(self, dna_dir: Path) -> Path:
        return dna_dir / self.name / (self.code_file or code_file_name(self.name, self.ribosome_type))


class DNA(BaseModel):
    version: int = DNA_VERSION
    uuid: str = Field(default_factory=new_uuid)
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    properties_schema_file: Optional[str] = None
    based_on: Optional[str] = None
    requires_version: int = 0
    dht_config: DHTConfig = Field(default_factory=DHTConfig)
    progenitor: Progenitor = Field(default_factory=Progenitor)
    zomes: List[Zome] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def canonical_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode()

    def get_zome(self, name: str) -> Optional[Zome]:
        for zome in self.zomes:
            if zome.name == name:
                return zome
        return None


def read_dna(path: Path, encoding: Encoding) -> DNA:
    """Decode a DNA descriptor. Raises OSError or ValueError with the path."""
    raw = encoding.read(path)
    try:
        return DNA.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"{path}: invalid DNA descriptor: {exc}") from exc


def write_dna(path: Path, dna: DNA, encoding: Encoding) -> None:
    encoding.write(path, dna.to_dict())


def dna_hash(dna: DNA, dna_dir: Path) -> str:
    """
    Content hash of a DNA: the canonical descriptor followed by each zome's
    code, in zome order. Independent of the on-disk encoding.
    """
    h = hashlib.sha256(dna.canonical_bytes())
    for zome in dna.zomes:
        code = zome.code_path(dna_dir)
        if code.is_file():
            h.update(code.read_bytes())
    return h.hexdigest()
