"""
Dataset loading: parse -> sanitize -> index -> fresh Navigator -> install.

A DatasetSession holds the one active dataset.  Installing is a single
reference swap performed only after every step has succeeded, so a failed
load (bad JSON, malformed tree) leaves the previous dataset and its
navigation state exactly as they were.

Each load is stamped with a generation number when it starts; a load that
finishes after a newer one has already been installed is discarded
(last-load-wins).

The default source falls back to DEMO_DATASET on any failure, so a session
that has called load_default() always has a usable dataset.
"""

from __future__ import annotations

import copy
import itertools
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from budget_tree.aggregator import count_leaves, count_nodes, total_for
from budget_tree.errors import DatasetLoadError, MalformedTreeError
from budget_tree.index import build_index
from budget_tree.models import BudgetNode, SearchIndexEntry
from budget_tree.navigator import Navigator
from budget_tree.sanitizer import DEFAULT_MAX_DEPTH, sanitize

logger = logging.getLogger(__name__)

DEMO_SOURCE = "built-in demo"

DEMO_DATASET: dict[str, Any] = {
    "name": "Thailand National Budget (FY2025)",
    "value": 0,
    "children": [
        {"name": "Ministry of Finance", "value": 0, "children": [
            {"name": "Customs Department", "value": 0},
            {"name": "Excise Department", "value": 0},
        ]},
        {"name": "Ministry of Education", "value": 0, "children": []},
        {"name": "Ministry of Public Health", "value": 0, "children": []},
        {"name": "Central Fund (งบกลาง)", "value": 0, "children": []},
    ],
}


@dataclass
class Dataset:
    """A loaded dataset: canonical tree, its index and its navigator.

    ``installed`` is False when a newer load finished first and this one was
    discarded.
    """

    root: BudgetNode
    index: list[SearchIndexEntry]
    navigator: Navigator
    source: str
    generation: int = 0
    is_demo: bool = False
    installed: bool = True
    warnings: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.root.name

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.root.name,
            "source": self.source,
            "is_demo": self.is_demo,
            "meta": self.root.meta,
            "total": total_for(self.root),
            "node_count": count_nodes(self.root),
            "leaf_count": count_leaves(self.root),
            "top_level_count": len(self.root.children),
        }


def build_dataset(raw: Any, source: str, max_depth: int = DEFAULT_MAX_DEPTH,
                  generation: int = 0, is_demo: bool = False) -> Dataset:
    """Run the sanitize/index/navigator pipeline without installing anything.

    Raises:
        MalformedTreeError: If the raw tree cannot be sanitized.
    """
    root = sanitize(raw, max_depth=max_depth)
    index = build_index(root)
    return Dataset(
        root=root,
        index=index,
        navigator=Navigator(root, index),
        source=source,
        generation=generation,
        is_demo=is_demo,
    )


def parse_json_text(text: str | bytes, source: str) -> Any:
    """Parse a dataset document, wrapping parse errors in DatasetLoadError."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DatasetLoadError(source, f"not UTF-8 text ({exc})") from exc
    elif text.startswith("\ufeff"):
        text = text[1:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DatasetLoadError(
            source, f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        ) from exc
    except RecursionError as exc:
        raise DatasetLoadError(source, "JSON nested too deeply") from exc
    if not isinstance(data, dict):
        raise DatasetLoadError(
            source, f"expected a JSON object at the top level, got {type(data).__name__}"
        )
    return data


class DatasetSession:
    """Owns the active dataset and replaces it atomically on each load.

    Usage::

        session = DatasetSession()
        session.load_default(Path("data/th_budget_FY2025.json"))
        nav = session.navigator
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self._dataset: Dataset | None = None
        self._generations = itertools.count(1)
        self._lock = threading.Lock()

    # ── accessors ─────────────────────────────────────────────────────────

    @property
    def dataset(self) -> Dataset:
        if self._dataset is None:
            raise LookupError("No dataset has been loaded")
        return self._dataset

    @property
    def is_loaded(self) -> bool:
        return self._dataset is not None

    @property
    def root(self) -> BudgetNode:
        return self.dataset.root

    @property
    def navigator(self) -> Navigator:
        return self.dataset.navigator

    # ── loading ───────────────────────────────────────────────────────────

    def _next_generation(self) -> int:
        with self._lock:
            return next(self._generations)

    def _install(self, dataset: Dataset) -> bool:
        """Make *dataset* current unless a newer load already won.

        Returns False, leaving the current dataset in place, when *dataset*
        was superseded.
        """
        with self._lock:
            current = self._dataset
            if current is not None and current.generation > dataset.generation:
                logger.info(
                    "Discarding dataset from %s: superseded by newer load from %s",
                    dataset.source, current.source,
                )
                return False
            self._dataset = dataset
        logger.info(
            "Installed dataset %r from %s (%d nodes)",
            dataset.name, dataset.source, len(dataset.index),
        )
        return True

    def _build_and_install(self, raw: Any, source: str, generation: int) -> Dataset:
        try:
            dataset = build_dataset(raw, source, self.max_depth, generation)
        except MalformedTreeError as exc:
            raise DatasetLoadError(source, str(exc)) from exc
        dataset.installed = self._install(dataset)
        return dataset

    def load_data(self, raw: Any, source: str = "upload") -> Dataset:
        """Install an already-parsed raw tree.

        Raises:
            DatasetLoadError: If the tree is malformed; nothing is replaced.
        """
        return self._build_and_install(raw, source, self._next_generation())

    def load_text(self, text: str | bytes, source: str = "upload") -> Dataset:
        """Parse and install a JSON document (e.g. an uploaded file).

        Raises:
            DatasetLoadError: On invalid JSON or a malformed tree.
        """
        generation = self._next_generation()
        raw = parse_json_text(text, source)
        return self._build_and_install(raw, source, generation)

    def load_file(self, path: Path | str) -> Dataset:
        """Read, parse and install a dataset file.

        Raises:
            DatasetLoadError: If the file is unreadable or its content invalid.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise DatasetLoadError(str(path), exc.strerror or str(exc)) from exc
        return self.load_text(data, source=str(path))

    def load_demo(self) -> Dataset:
        """Install the built-in demo dataset."""
        generation = self._next_generation()
        dataset = build_dataset(copy.deepcopy(DEMO_DATASET), DEMO_SOURCE,
                                self.max_depth, generation, is_demo=True)
        dataset.installed = self._install(dataset)
        return dataset

    def load_default(self, path: Path | str | None) -> Dataset:
        """Load the default dataset file, falling back to the demo dataset.

        Any failure (missing file, bad JSON, malformed tree) is logged as a
        warning and the demo dataset is installed instead.
        """
        if path is None:
            return self.load_demo()
        try:
            return self.load_file(path)
        except DatasetLoadError as exc:
            logger.warning("Failed to load default dataset, using demo set: %s", exc)
            dataset = self.load_demo()
            dataset.warnings.append(str(exc))
            return dataset
