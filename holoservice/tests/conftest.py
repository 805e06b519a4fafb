"""
holoservice test configuration: shared fixtures.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from holoservice.config import DEFAULT_DIRECTORY_NAME
from holoservice.service import DBPolicy, init

HERBERT = "Herbert <h@bert.com>"


@pytest.fixture
def service(tmp_path):
    """Freshly initialized service root."""
    return init(tmp_path / DEFAULT_DIRECTORY_NAME, HERBERT)


@pytest.fixture
def chain(service):
    """A dev chain named `test`, store initialized, not yet generated."""
    return service.gen_dev(service.path / "test", "json", DBPolicy.INITIALIZE)


def read_tree(root: Path) -> dict:
    """Map of relative path -> bytes for every file under root."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def hidden_entries(directory: Path) -> list:
    return [p.name for p in directory.iterdir() if p.name.startswith(".")]


pytest.read_tree = read_tree
pytest.hidden_entries = hidden_entries
