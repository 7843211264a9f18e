"""
Index builder: flatten a canonical tree into SearchIndexEntry rows.

Rows come out in depth-first pre-order (root first, then each child's
subtree in dataset order).  Search tie-breaking depends on that order, so
it must not change.  The index is rebuilt in full whenever a dataset is
installed; it is never patched in place.
"""

from __future__ import annotations

from collections.abc import Iterator

from budget_tree.aggregator import node_totals
from budget_tree.models import BudgetNode, SearchIndexEntry


def walk(root: BudgetNode) -> Iterator[tuple[BudgetNode, tuple[str, ...]]]:
    """Yield ``(node, path)`` for every node in pre-order."""
    stack: list[tuple[BudgetNode, tuple[str, ...]]] = [(root, (root.name,))]
    while stack:
        node, path = stack.pop()
        yield node, path
        for child in reversed(node.children):
            stack.append((child, path + (child.name,)))


def build_index(root: BudgetNode) -> list[SearchIndexEntry]:
    """Walk *root* in pre-order and return one entry per node.

    Each entry's ``parent_total`` is the total of its immediate parent
    (None for the root).  ``len(build_index(root)) == count_nodes(root)``.
    """
    totals = node_totals(root)
    entries: list[SearchIndexEntry] = []
    stack: list[tuple[BudgetNode, tuple[str, ...], float | None]] = [
        (root, (root.name,), None)
    ]
    while stack:
        node, path, parent_total = stack.pop()
        total = totals[id(node)]
        entries.append(SearchIndexEntry(
            name=node.name,
            path=path,
            total=total,
            parent_total=parent_total,
        ))
        # Reverse so the first child is popped (and indexed) first
        for child in reversed(node.children):
            stack.append((child, path + (child.name,), total))
    return entries
