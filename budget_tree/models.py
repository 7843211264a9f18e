"""
Data structures for the budget tree engine.

BudgetNode instances are only ever produced by ``budget_tree.sanitizer`` so
every field already satisfies its invariant: ``children`` is a list,
``value`` is a finite float or None, ``desc`` is a string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ── Canonical tree ────────────────────────────────────────────────────────────


@dataclass(eq=True)
class BudgetNode:
    """One ministry, department or programme in a canonical budget tree."""

    name: str
    value: float | None = None
    desc: str = ""
    children: list[BudgetNode] = field(default_factory=list)
    meta: dict[str, Any] | None = None   # root only, opaque

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def find_child(self, name: str) -> BudgetNode | None:
        """Return the first direct child named *name*, or None."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the dataset JSON shape.

        The output sanitizes back to an identical tree, so it doubles as the
        export format for uploads and the ``/tree`` endpoint.
        """
        out: dict[str, Any] = {}
        stack: list[tuple[BudgetNode, dict[str, Any]]] = [(self, out)]
        while stack:
            node, target = stack.pop()
            target["name"] = node.name
            target["value"] = node.value
            target["desc"] = node.desc
            target["children"] = []
            if node.meta is not None:
                target["meta"] = dict(node.meta)
            for child in node.children:
                child_out: dict[str, Any] = {}
                target["children"].append(child_out)
                stack.append((child, child_out))
        return out


# ── Navigation ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NavigationFrame:
    """A position in the tree: the centre node and its root-to-node names.

    ``node`` is shared with the canonical tree, not copied.
    """

    node: BudgetNode = field(compare=False)
    path: tuple[str, ...]

    @property
    def path_str(self) -> str:
        return path_to_str(self.path)


# ── Search index ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SearchIndexEntry:
    """Flattened view of one node, used for name lookups."""

    name: str
    path: tuple[str, ...]
    total: float | None
    parent_total: float | None

    @property
    def path_str(self) -> str:
        return path_to_str(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": list(self.path),
            "total": self.total,
            "parent_total": self.parent_total,
        }


# ── Notes ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NoteEntry:
    """A single timestamped note attached to a node path."""

    text: str
    timestamp: int   # epoch millis

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "timestamp": self.timestamp}


def path_to_str(path) -> str:
    """Join a name path into the ``/Root/Child`` form used for note keys.

    Examples:
        path_to_str(("National Budget", "Ministry of Finance"))
        -> "/National Budget/Ministry of Finance"
    """
    return "/" + "/".join(path)


def split_path(path_str: str) -> tuple[str, ...]:
    """Split a ``/Root/Child`` string back into names.

    Leading/trailing slashes and empty segments are ignored, so ``""`` and
    ``"/"`` both yield an empty tuple.
    """
    return tuple(seg for seg in path_str.split("/") if seg)
