"""
Pytest fixtures for the budget mind map tests.

Provides reusable fixtures: raw (unsanitized) sample trees, canonical trees,
a loaded DatasetSession, notes stores on a temp directory, and a TestClient
around an app built by create_app() with an isolated config.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget_tree.dataset import DatasetSession
from budget_tree.notes import JsonFileNotesStore, MemoryNotesStore
from budget_tree.sanitizer import sanitize
from utils.config import AppConfig

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DATASET = REPO_ROOT / "data" / "th_budget_FY2025.json"


# ── Sample data ───────────────────────────────────────────────────────────────

def make_sample_raw() -> dict:
    """A small mixed tree: explicit totals, derived totals, blank leaves.

    Totals:
        National Budget            = 1000 (derived: 600 + 400 + 0)
          Ministry of Finance      = 600  (explicit, children add to 550)
            Customs Department     = 300
            Excise Department      = 250
          Ministry of Education    = 400  (derived)
            Basic Education        = "300" (string value)
            Vocational Education   = 100
          Central Fund             = None (blank leaf)
    """
    return {
        "name": "National Budget",
        "desc": "Sample",
        "meta": {"fiscalYear": "2025", "source": "tests"},
        "value": "",
        "children": [
            {"name": "Ministry of Finance", "value": 600, "desc": "Fiscal policy",
             "children": [
                 {"name": "Customs Department", "value": 300},
                 {"name": "Excise Department", "value": 250},
             ]},
            {"name": "Ministry of Education", "children": [
                {"name": "Basic Education", "value": "300"},
                {"name": "Vocational Education", "value": 100},
            ]},
            {"name": "Central Fund", "value": ""},
        ],
    }


def make_deep_raw(depth: int) -> dict:
    """A single chain *depth* levels below the root, value 1 at the bottom."""
    bottom = {"name": f"L{depth}", "value": 1}
    node = bottom
    for level in range(depth - 1, -1, -1):
        node = {"name": f"L{level}", "children": [node]}
    return node


@pytest.fixture()
def sample_raw():
    return make_sample_raw()


@pytest.fixture()
def sample_tree():
    """Canonical BudgetNode built from make_sample_raw()."""
    return sanitize(make_sample_raw())


@pytest.fixture()
def session():
    """DatasetSession with the sample tree installed."""
    s = DatasetSession()
    s.load_data(make_sample_raw(), source="tests")
    return s


@pytest.fixture()
def memory_notes():
    ticks = iter(range(1_700_000_000, 1_800_000_000))
    return MemoryNotesStore(clock=lambda: float(next(ticks)))


@pytest.fixture()
def notes_file(tmp_path):
    return tmp_path / "notes.json"


@pytest.fixture()
def file_notes(notes_file):
    return JsonFileNotesStore(notes_file)


@pytest.fixture()
def app_config(tmp_path):
    """AppConfig isolated from the environment and the working directory."""
    cfg = AppConfig()
    cfg.data_path = tmp_path / "missing_dataset.json"
    cfg.notes_path = tmp_path / "notes.json"
    cfg.log_format = "text"
    cfg.log_level = "WARNING"
    cfg.cors_origins = ["*"]
    return cfg


@pytest.fixture()
def client(app_config, session):
    """TestClient for an app serving the sample tree."""
    from fastapi.testclient import TestClient
    from api.app import create_app

    app = create_app(config=app_config, session=session)
    with TestClient(app) as c:
        yield c
