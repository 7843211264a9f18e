"""
Navigator: resolve paths and search queries, and keep the drill-down history.

One Navigator belongs to one installed dataset; loading a new dataset builds
a new Navigator rather than mutating the old one.

Navigation is a small state machine over positions ``(node, path)``:

    drill_to   push current position, move to target      depth + 1
    go_back    pop the last position (no-op at depth 0)   depth - 1
    reset      clear history, return to the dataset root  depth = 0

Search matching policy (deterministic, case-insensitive):
    1. first index entry whose name equals the query
    2. otherwise the first entry whose name contains the query
"First" is pre-order index order, i.e. the order the dataset lists nodes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from budget_tree.errors import InvalidQueryError
from budget_tree.index import build_index, walk
from budget_tree.models import BudgetNode, NavigationFrame, SearchIndexEntry, split_path

logger = logging.getLogger(__name__)


def _normalize_query(query: str) -> str:
    if query is None or not str(query).strip():
        raise InvalidQueryError("Search query must not be empty")
    return str(query).strip().casefold()


class Navigator:
    """Current position plus a LIFO back-stack for one dataset.

    Usage::

        nav = Navigator(root)
        entry = nav.resolve_by_query("ministry of finance")
        nav.drill_to_path(entry.path)
        nav.go_back()     # back at the root
    """

    def __init__(self, root: BudgetNode,
                 index: list[SearchIndexEntry] | None = None) -> None:
        self._root = root
        self._index = index if index is not None else build_index(root)
        # nodes[i] is the node that index[i] describes (both pre-order)
        self._nodes = [node for node, _ in walk(root)]
        self._current = NavigationFrame(root, (root.name,))
        self._stack: list[NavigationFrame] = []

    # ── state ─────────────────────────────────────────────────────────────

    @property
    def root(self) -> BudgetNode:
        return self._root

    @property
    def index(self) -> list[SearchIndexEntry]:
        return self._index

    @property
    def current(self) -> NavigationFrame:
        return self._current

    @property
    def current_root(self) -> BudgetNode:
        return self._current.node

    @property
    def current_path(self) -> tuple[str, ...]:
        return self._current.path

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def can_go_back(self) -> bool:
        return bool(self._stack)

    @property
    def history(self) -> tuple[NavigationFrame, ...]:
        return tuple(self._stack)

    # ── resolution ────────────────────────────────────────────────────────

    def resolve_by_path(
        self, path: Sequence[str] | str
    ) -> tuple[BudgetNode, tuple[str, ...]] | None:
        """Walk from the root following *path*; None if any segment misses.

        The root name is prepended when the caller left it off.  A string
        path is split on ``/`` (``"/Root/Child"``).  Among siblings sharing
        a name, the first one wins.
        """
        names = split_path(path) if isinstance(path, str) else tuple(path)
        if not names or names[0] != self._root.name:
            names = (self._root.name,) + names

        node = self._root
        for segment in names[1:]:
            child = node.find_child(segment)
            if child is None:
                logger.debug("path miss at segment %r of %r", segment, names)
                return None
            node = child
        return node, names

    def search(self, query: str, limit: int | None = None) -> list[SearchIndexEntry]:
        """Return all matches for *query*: exact names first, then substrings.

        Each group keeps index (pre-order) order.

        Raises:
            InvalidQueryError: If the query is empty or whitespace.
        """
        needle = _normalize_query(query)
        exact: list[SearchIndexEntry] = []
        partial: list[SearchIndexEntry] = []
        for entry in self._index:
            name = entry.name.casefold()
            if name == needle:
                exact.append(entry)
            elif needle in name:
                partial.append(entry)
        results = exact + partial
        return results[:limit] if limit is not None else results

    def _best_position(self, query: str) -> int | None:
        needle = _normalize_query(query)
        first_partial = None
        for position, entry in enumerate(self._index):
            name = entry.name.casefold()
            if name == needle:
                return position
            if first_partial is None and needle in name:
                first_partial = position
        return first_partial

    def resolve_by_query(self, query: str) -> SearchIndexEntry | None:
        """Return the best index entry for *query*, or None when nothing matches.

        Raises:
            InvalidQueryError: If the query is empty or whitespace.
        """
        position = self._best_position(query)
        return None if position is None else self._index[position]

    # ── transitions ───────────────────────────────────────────────────────

    def drill_to(self, node: BudgetNode, path: Sequence[str]) -> NavigationFrame:
        """Push the current position and make ``(node, path)`` current."""
        self._stack.append(self._current)
        self._current = NavigationFrame(node, tuple(path))
        logger.debug("drill to /%s (depth %d)", "/".join(self._current.path), self.depth)
        return self._current

    def go_back(self) -> bool:
        """Return to the previous position.

        Returns:
            False, with no state change, when there is nothing to go back to.
        """
        if not self._stack:
            return False
        self._current = self._stack.pop()
        logger.debug("back to /%s (depth %d)", "/".join(self._current.path), self.depth)
        return True

    def reset(self) -> NavigationFrame:
        """Clear the history and re-centre on the dataset root."""
        self._stack.clear()
        self._current = NavigationFrame(self._root, (self._root.name,))
        return self._current

    def drill_to_path(self, path: Sequence[str] | str) -> NavigationFrame | None:
        """Resolve *path* and drill to it; None (state unchanged) on a miss."""
        resolved = self.resolve_by_path(path)
        if resolved is None:
            return None
        return self.drill_to(*resolved)

    def drill_to_query(self, query: str) -> NavigationFrame | None:
        """Search for *query* and drill to the best match; None on a miss.

        Drills to the matched node itself, so a match below a duplicated
        sibling name is reached even though its name path is ambiguous.
        """
        position = self._best_position(query)
        if position is None:
            return None
        return self.drill_to(self._nodes[position], self._index[position].path)

    def select(
        self, path: Sequence[str] | str
    ) -> tuple[BudgetNode, tuple[str, ...]] | None:
        """Handle a click on the node at *path*.

        Branches become the new centre; leaves are only resolved so their
        details can be shown.  Returns None (state unchanged) on a miss.
        """
        resolved = self.resolve_by_path(path)
        if resolved is None:
            return None
        node, names = resolved
        if node.children:
            self.drill_to(node, names)
        return resolved

    def parent_total(self, path: Sequence[str]) -> float | None:
        """Total of the parent of the node at *path*, or None for the root."""
        names = tuple(path)
        if len(names) <= 1:
            return None
        for entry in self._index:
            if entry.path == names:
                return entry.parent_total
        return None
