"""
Sanitizer: turn untyped JSON-like input into a canonical BudgetNode tree.

Coercion rules:
  - value:    "", None, missing -> None; otherwise coerce_number(), and any
              non-finite or unparsable result -> None
  - desc:     falsy -> ""; anything else kept (non-strings via str())
  - children: not a list/tuple -> []; otherwise each element sanitized in order
  - name:     missing/None -> ""; non-strings via str()
  - meta:     kept on the root only, as an opaque dict

The walk is iterative.  Raw containers on the current root-to-node path are
tracked by id() so a self-referencing input raises MalformedTreeError rather
than looping; the same raw object reused as two siblings is fine and is copied
twice.  Nesting deeper than ``max_depth`` is also reported as malformed.

The input is never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from budget_tree.errors import MalformedTreeError
from budget_tree.models import BudgetNode
from utils.strings import coerce_number

DEFAULT_MAX_DEPTH = 256

_ENTER = 0
_EXIT = 1


def _fields(raw: Any, path: tuple[str, ...]) -> Mapping[str, Any]:
    """Return a read-only mapping view of a raw node."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, BudgetNode):
        return {
            "name": raw.name,
            "value": raw.value,
            "desc": raw.desc,
            "children": raw.children,
            "meta": raw.meta,
        }
    raise MalformedTreeError(
        f"expected an object node, got {type(raw).__name__}", path
    )


def _coerce_name(raw_name: Any) -> str:
    if raw_name is None:
        return ""
    return raw_name if isinstance(raw_name, str) else str(raw_name)


def _coerce_desc(raw_desc: Any) -> str:
    if not raw_desc:
        return ""
    return raw_desc if isinstance(raw_desc, str) else str(raw_desc)


def _coerce_value(raw_value: Any) -> float | None:
    if raw_value is None or raw_value == "":
        return None
    return coerce_number(raw_value)


def sanitize(raw: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> BudgetNode:
    """Normalize an arbitrary raw tree into a canonical BudgetNode.

    Args:
        raw: Parsed JSON (dict), an existing BudgetNode, or None.
        max_depth: Maximum nesting depth; the root is depth 0.

    Returns:
        A fresh BudgetNode tree owned by the caller.

    Raises:
        MalformedTreeError: If a node is not an object, the input references
            itself, or nesting exceeds ``max_depth``.
    """
    holder: list[BudgetNode] = []
    on_path: set[int] = set()
    # (action, raw, parent children list, depth, names path)
    stack: list[tuple[int, Any, list[BudgetNode] | None, int, tuple[str, ...]]] = [
        (_ENTER, raw, holder, 0, ())
    ]

    while stack:
        action, item, siblings, depth, path = stack.pop()
        if action == _EXIT:
            on_path.discard(item)
            continue

        fields = _fields(item, path)
        name = _coerce_name(fields.get("name"))
        here = path + (name,)

        if depth > max_depth:
            raise MalformedTreeError(
                f"tree is nested deeper than {max_depth} levels", here
            )
        key = id(item)
        if item is not None and key in on_path:
            raise MalformedTreeError("tree references itself", here)

        node = BudgetNode(
            name=name,
            value=_coerce_value(fields.get("value")),
            desc=_coerce_desc(fields.get("desc")),
        )
        if depth == 0:
            meta = fields.get("meta")
            if isinstance(meta, Mapping):
                node.meta = dict(meta)
        siblings.append(node)

        raw_children = fields.get("children")
        if not isinstance(raw_children, (list, tuple)) or not raw_children:
            continue

        if item is not None:
            on_path.add(key)
            stack.append((_EXIT, key, None, depth, path))
        for child in reversed(raw_children):
            stack.append((_ENTER, child, node.children, depth + 1, here))

    return holder[0]
