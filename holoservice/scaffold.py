"""
Scaffold templates.

A scaffold is a versioned JSON bundle holding a DNA skeleton with inline
zome code and entry schemas, UI assets, test sets and multi-role test
scenarios. materialize() lays it out as an instance tree:

    <root>/dna/<DNA-file>.<fmt>
    <root>/dna/properties_schema.json
    <root>/dna/<zome>/<zome>.<ext>
    <root>/dna/<zome>/<entry>.json
    <root>/ui/<file>
    <root>/test/<test-set>.json
    <root>/test/<scenario>/<role>.json
    <root>/test/<scenario>/_config.json

The DNA descriptor honours the requested encoding; everything else is JSON.
The descriptor is written last.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import (
    CHAIN_DNA_DIR,
    CHAIN_TEST_DIR,
    CHAIN_UI_DIR,
    DNA_FILE_NAME,
    PROPERTIES_SCHEMA_FILE,
    SCENARIO_CONFIG_FILE,
)
from .dna import (
    DATA_FORMAT_JSON,
    DHTConfig,
    DNA,
    EntryDef,
    FunctionDef,
    Progenitor,
    RIBOSOME_JS,
    SHARING_PUBLIC,
    Zome,
    code_file_name,
    new_uuid,
    write_dna,
)
from .encoding import Encoding
from .errors import ScaffoldParseError, ScaffoldVersionMismatch

SCAFFOLD_VERSION = "0.0.2"

ScaffoldSource = Union[str, bytes, IO[str], IO[bytes]]


# =============================================================================
# TEMPLATE MODEL
# =============================================================================

class ScaffoldEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    data_format: str = DATA_FORMAT_JSON
    entry_schema: str = Field(default="", alias="schema")
    sharing: str = SHARING_PUBLIC


class ScaffoldZome(BaseModel):
    name: str
    description: str = ""
    ribosome_type: str = RIBOSOME_JS
    code: str = ""
    code_file: Optional[str] = None
    entries: List[ScaffoldEntry] = Field(default_factory=list)
    functions: List[FunctionDef] = Field(default_factory=list)


class ScaffoldDNA(BaseModel):
    version: int = 1
    name: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    properties_schema: str = ""
    based_on: Optional[str] = None
    requires_version: int = 0
    dht_config: DHTConfig = Field(default_factory=DHTConfig)
    progenitor: Optional[Progenitor] = None
    zomes: List[ScaffoldZome] = Field(default_factory=list)


class TestSet(BaseModel):
    name: str
    tests: List[Dict[str, Any]] = Field(default_factory=list)


class UIFile(BaseModel):
    file_name: str
    data: str = ""


class ScenarioRole(BaseModel):
    name: str
    tests: List[Dict[str, Any]] = Field(default_factory=list)


class Scenario(BaseModel):
    name: str
    roles: List[ScenarioRole] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)


class ScaffoldTemplate(BaseModel):
    scaffold_version: str
    generator: str = ""
    dna: ScaffoldDNA
    test_sets: List[TestSet] = Field(default_factory=list)
    ui: List[UIFile] = Field(default_factory=list)
    scenarios: List[Scenario] = Field(default_factory=list)


# =============================================================================
# PARSING
# =============================================================================

def _read_source(source: ScaffoldSource) -> str:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        try:
            return source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ScaffoldParseError(f"scaffold is not valid UTF-8: {exc}") from exc
    return source


def parse_scaffold(source: ScaffoldSource, expected_version: str = SCAFFOLD_VERSION) -> ScaffoldTemplate:
    """Decode a scaffold blob. The version must match exactly."""
    text = _read_source(source)
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScaffoldParseError(f"scaffold is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ScaffoldParseError("scaffold must be a JSON object")

    version = raw.get("scaffold_version")
    if version != expected_version:
        raise ScaffoldVersionMismatch(str(version), expected_version)

    try:
        return ScaffoldTemplate.model_validate(raw)
    except ValidationError as exc:
        raise ScaffoldParseError(f"invalid scaffold: {exc}") from exc


# =============================================================================
# MATERIALIZATION
# =============================================================================

def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _entry_schema_payload(entry: ScaffoldEntry) -> Any:
    try:
        return json.loads(entry.entry_schema)
    except json.JSONDecodeError as exc:
        raise ScaffoldParseError(f"entry {entry.name!r}: schema is not valid JSON") from exc


def _write_zome(dna_dir: Path, zome: ScaffoldZome) -> Zome:
    zome_dir = dna_dir / zome.name
    code_file = zome.code_file or code_file_name(zome.name, zome.ribosome_type)
    _write_text(zome_dir / code_file, zome.code)

    entries: List[EntryDef] = []
    for entry in zome.entries:
        schema_file = None
        if entry.entry_schema and entry.data_format == DATA_FORMAT_JSON:
            schema_file = f"{entry.name}.json"
            _write_json(zome_dir / schema_file, _entry_schema_payload(entry))
        entries.append(
            EntryDef(
                name=entry.name,
                data_format=entry.data_format,
                schema_file=schema_file,
                sharing=entry.sharing,
            )
        )

    return Zome(
        name=zome.name,
        description=zome.description,
        ribosome_type=zome.ribosome_type,
        code_file=code_file,
        entries=entries,
        functions=[f.model_copy() for f in zome.functions],
    )


def write_test_assets(root: Path, template: ScaffoldTemplate) -> None:
    test_dir = root / CHAIN_TEST_DIR
    test_dir.mkdir(parents=True, exist_ok=True)
    for test_set in template.test_sets:
        _write_json(test_dir / f"{test_set.name}.json", test_set.tests)
    for scenario in template.scenarios:
        scenario_dir = test_dir / scenario.name
        for role in scenario.roles:
            _write_json(scenario_dir / f"{role.name}.json", role.tests)
        _write_json(scenario_dir / f"{SCENARIO_CONFIG_FILE}.json", scenario.config)


def write_ui_assets(root: Path, template: ScaffoldTemplate) -> None:
    ui_dir = root / CHAIN_UI_DIR
    ui_dir.mkdir(parents=True, exist_ok=True)
    for ui_file in template.ui:
        _write_text(ui_dir / ui_file.file_name, ui_file.data)


def materialize(
    template: ScaffoldTemplate,
    root: Path,
    app_name: str,
    encoding: Encoding,
    progenitor: Optional[Progenitor] = None,
) -> DNA:
    """
    Write template under root and return the resulting DNA. The DNA gets a
    fresh UUID; progenitor, when given, replaces the template's own.
    """
    root = Path(root)
    dna_dir = root / CHAIN_DNA_DIR
    dna_dir.mkdir(parents=True, exist_ok=True)

    skeleton = template.dna
    zomes = [_write_zome(dna_dir, z) for z in skeleton.zomes]

    properties_schema_file = None
    if skeleton.properties_schema:
        properties_schema_file = PROPERTIES_SCHEMA_FILE
        try:
            schema = json.loads(skeleton.properties_schema)
        except json.JSONDecodeError as exc:
            raise ScaffoldParseError("properties_schema is not valid JSON") from exc
        _write_json(dna_dir / properties_schema_file, schema)

    write_ui_assets(root, template)
    write_test_assets(root, template)

    dna = DNA(
        version=skeleton.version,
        uuid=new_uuid(),
        name=app_name,
        properties=dict(skeleton.properties),
        properties_schema_file=properties_schema_file,
        based_on=skeleton.based_on,
        requires_version=skeleton.requires_version,
        dht_config=skeleton.dht_config.model_copy(),
        progenitor=(progenitor or skeleton.progenitor or Progenitor()).model_copy(),
        zomes=zomes,
    )
    write_dna(dna_dir / encoding.filename(DNA_FILE_NAME), dna, encoding)
    return dna
