"""
Aggregator: derived totals, shares and counts over a canonical tree.

Explicit values are authoritative.  A node with ``value`` set reports that
figure even when its children add up to something else; only nodes with
``value=None`` fall back to the sum of their children.  A None-valued leaf
contributes 0 to an ancestor's sum but reports None for itself.

All traversals are iterative so any tree the sanitizer accepts can be
aggregated without hitting the interpreter's recursion limit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from budget_tree.models import BudgetNode

# Shown wherever a share cannot be computed (zero or missing base).
UNAVAILABLE = "—"


def _subtree_totals(node: BudgetNode) -> dict[int, float | None]:
    """Compute total_for() for *node* and every descendant it depends on.

    Returns a dict keyed by id(node).  Subtrees under an explicit value are
    never visited.
    """
    totals: dict[int, float | None] = {}
    stack: list[tuple[BudgetNode, bool]] = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        if current.value is not None:
            totals[id(current)] = current.value
            continue
        if not current.children:
            totals[id(current)] = None
            continue
        if not expanded:
            stack.append((current, True))
            for child in current.children:
                stack.append((child, False))
            continue
        totals[id(current)] = sum(
            (totals[id(c)] or 0.0 for c in current.children), 0.0
        )
    return totals


def node_totals(root: BudgetNode) -> dict[int, float | None]:
    """Compute total_for() for *root* and every node below it in one pass.

    Unlike _subtree_totals(), subtrees under an explicit value are visited
    too, so callers that need a total per node (index, tree payloads,
    reconciliation) can look each one up by id(node).
    """
    totals: dict[int, float | None] = {}
    stack: list[tuple[BudgetNode, bool]] = [(root, False)]
    while stack:
        current, expanded = stack.pop()
        if current.children and not expanded:
            stack.append((current, True))
            for child in current.children:
                stack.append((child, False))
            continue
        if current.value is not None:
            totals[id(current)] = current.value
        elif not current.children:
            totals[id(current)] = None
        else:
            totals[id(current)] = sum(
                (totals[id(c)] or 0.0 for c in current.children), 0.0
            )
    return totals


def total_for(node: BudgetNode) -> float | None:
    """Return the node's explicit value, or the sum of its children's totals.

    Returns None only for a leaf whose value is None.
    """
    if node.value is not None:
        return node.value
    if not node.children:
        return None
    return _subtree_totals(node)[id(node)]


def sum_children(node: BudgetNode) -> float:
    """Sum of the children's totals, ignoring the node's own value.

    A childless node sums to 0.
    """
    total = 0.0
    for child in node.children:
        total += total_for(child) or 0.0
    return total


def percentage_share(value: float | None, base: float | None) -> str:
    """Format value/base as a two-decimal percentage string.

    Returns the bare number (e.g. ``"33.33"``) so it stays parseable; the
    display layer adds the ``%`` sign.  A None value or a zero/None base
    yields UNAVAILABLE instead of raising.

    Examples:
        percentage_share(25, 100) -> "25.00"
        percentage_share(5, 0)    -> "—"
    """
    if not base or value is None:
        return UNAVAILABLE
    return f"{value / base * 100:.2f}"


def count_leaves(node: BudgetNode) -> int:
    """Count childless descendants; a childless node is itself one leaf."""
    leaves = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if current.children:
            stack.extend(current.children)
        else:
            leaves += 1
    return leaves


def count_nodes(node: BudgetNode) -> int:
    """Count the node plus all of its descendants."""
    nodes = 0
    stack = [node]
    while stack:
        current = stack.pop()
        nodes += 1
        stack.extend(current.children)
    return nodes


# ── Node details ──────────────────────────────────────────────────────────────


@dataclass
class ChildShare:
    """One row of a node's breakdown: a direct child and its share."""

    name: str
    total: float | None
    share: str
    has_children: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "total": self.total,
            "share": self.share,
            "has_children": self.has_children,
        }


@dataclass
class NodeSummary:
    """Everything a details panel shows for one node."""

    name: str
    desc: str
    value: float | None
    total: float | None
    parent_total: float | None
    share: str
    leaf_count: int
    node_count: int
    children: list[ChildShare] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "desc": self.desc,
            "value": self.value,
            "total": self.total,
            "parent_total": self.parent_total,
            "share": self.share,
            "leaf_count": self.leaf_count,
            "node_count": self.node_count,
            "children": [c.to_dict() for c in self.children],
        }


def summarize(node: BudgetNode, parent_total: float | None = None) -> NodeSummary:
    """Build the details-panel summary for *node*.

    Args:
        node: Node to describe.
        parent_total: Total of the node's parent, or None at the root.

    Returns:
        NodeSummary with the node's own share of its parent and one
        ChildShare row per direct child (in dataset order).
    """
    totals = node_totals(node)
    total = totals[id(node)]
    rows = []
    for child in node.children:
        child_total = totals[id(child)]
        rows.append(ChildShare(
            name=child.name,
            total=child_total,
            share=percentage_share(child_total, total),
            has_children=bool(child.children),
        ))
    return NodeSummary(
        name=node.name,
        desc=node.desc,
        value=node.value,
        total=total,
        parent_total=parent_total,
        share=percentage_share(total, parent_total),
        leaf_count=count_leaves(node),
        node_count=count_nodes(node),
        children=rows,
    )
