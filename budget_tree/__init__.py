"""Budget tree engine: sanitize, aggregate, index and navigate budget datasets."""

# Data model
from budget_tree.models import (
    BudgetNode,
    NavigationFrame,
    SearchIndexEntry,
    NoteEntry,
    path_to_str,
    split_path,
)

# Errors
from budget_tree.errors import (
    BudgetTreeError,
    MalformedTreeError,
    DatasetLoadError,
    InvalidQueryError,
    NotesUnavailableError,
)

# Sanitizer
from budget_tree.sanitizer import sanitize, DEFAULT_MAX_DEPTH

# Aggregator
from budget_tree.aggregator import (
    UNAVAILABLE,
    total_for,
    node_totals,
    sum_children,
    percentage_share,
    count_leaves,
    count_nodes,
    summarize,
    NodeSummary,
    ChildShare,
)

# Index and navigation
from budget_tree.index import build_index
from budget_tree.navigator import Navigator

# Datasets
from budget_tree.dataset import (
    DEMO_DATASET,
    Dataset,
    DatasetSession,
    build_dataset,
    parse_json_text,
)

# Notes
from budget_tree.notes import (
    NotesStore,
    MemoryNotesStore,
    JsonFileNotesStore,
    notes_key,
    export_filename,
)

__all__ = [
    # Models
    "BudgetNode",
    "NavigationFrame",
    "SearchIndexEntry",
    "NoteEntry",
    "path_to_str",
    "split_path",
    # Errors
    "BudgetTreeError",
    "MalformedTreeError",
    "DatasetLoadError",
    "InvalidQueryError",
    "NotesUnavailableError",
    # Sanitizer
    "sanitize",
    "DEFAULT_MAX_DEPTH",
    # Aggregator
    "UNAVAILABLE",
    "total_for",
    "node_totals",
    "sum_children",
    "percentage_share",
    "count_leaves",
    "count_nodes",
    "summarize",
    "NodeSummary",
    "ChildShare",
    # Index / navigation
    "build_index",
    "Navigator",
    # Datasets
    "DEMO_DATASET",
    "Dataset",
    "DatasetSession",
    "build_dataset",
    "parse_json_text",
    # Notes
    "NotesStore",
    "MemoryNotesStore",
    "JsonFileNotesStore",
    "notes_key",
    "export_filename",
]
