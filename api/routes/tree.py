"""
Tree endpoints: the renderer's view of the dataset.

GET /api/v1/tree     subtree with per-node totals and shares
GET /api/v1/node     details panel for one node
GET /api/v1/summary  dataset-level summary

``path`` parameters accept "/A/B" strings; when omitted, the current
navigation centre is used.  The root name may be left off.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_navigator, get_session
from api.models import DatasetSummaryOut, NodeDetailOut, TreeResponse
from budget_tree.aggregator import node_totals, percentage_share, summarize
from budget_tree.dataset import DatasetSession
from budget_tree.models import BudgetNode, path_to_str
from budget_tree.navigator import Navigator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tree"])


def resolve_or_404(navigator: Navigator, path: str | list[str] | None):
    """Resolve *path* (default: current centre) or raise HTTP 404."""
    if path is None:
        return navigator.current_root, navigator.current_path
    resolved = navigator.resolve_by_path(path)
    if resolved is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {path}")
    return resolved


def node_detail(navigator: Navigator, node: BudgetNode,
                path: tuple[str, ...]) -> NodeDetailOut:
    """Build the details panel model for a resolved node."""
    summary = summarize(node, navigator.parent_total(path))
    data = summary.to_dict()
    data["path"] = list(path)
    data["path_str"] = path_to_str(path)
    return NodeDetailOut(**data)


def tree_payload(node: BudgetNode, parent_total: float | None,
                 max_depth: int | None = None) -> dict[str, Any]:
    """Serialize a subtree with totals and shares, down to *max_depth* levels.

    Built as plain dicts without recursion so every depth the sanitizer
    accepts can be returned; the shape matches TreeNodeOut.
    """
    totals = node_totals(node)

    def entry(current: BudgetNode, base: float | None, depth: int) -> dict[str, Any]:
        total = totals[id(current)]
        return {
            "name": current.name,
            "value": current.value,
            "desc": current.desc,
            "total": total,
            "share": percentage_share(total, base),
            "truncated": (max_depth is not None and depth >= max_depth
                          and bool(current.children)),
            "children": [],
        }

    payload = entry(node, parent_total, 0)
    stack = [(node, payload, 0)]
    while stack:
        current, out, depth = stack.pop()
        if out["truncated"]:
            continue
        for child in current.children:
            child_out = entry(child, out["total"], depth + 1)
            out["children"].append(child_out)
            stack.append((child, child_out, depth + 1))
    return payload


@router.get(
    "/tree",
    response_model=TreeResponse,
    summary="Subtree with totals",
    responses={404: {"description": "Path not found"}},
)
def get_tree(
    path: str | None = Query(None, description="Node path such as /Root/Ministry; default is the current centre"),
    depth: int | None = Query(None, ge=0, le=256, description="Levels of children to include (default: all)"),
    navigator: Navigator = Depends(get_navigator),
) -> JSONResponse:
    """Return the subtree at *path* with a total and share on every node."""
    node, names = resolve_or_404(navigator, path)
    return JSONResponse(content={
        "path": list(names),
        "path_str": path_to_str(names),
        "meta": navigator.root.meta,
        "tree": tree_payload(node, navigator.parent_total(names), depth),
    })


@router.get(
    "/node",
    response_model=NodeDetailOut,
    summary="Node details",
    responses={404: {"description": "Path not found"}},
)
def get_node(
    path: str | None = Query(None, description="Node path; default is the current centre"),
    navigator: Navigator = Depends(get_navigator),
) -> NodeDetailOut:
    """Return total, share, counts and child breakdown for one node."""
    node, names = resolve_or_404(navigator, path)
    return node_detail(navigator, node, names)


@router.get("/summary", response_model=DatasetSummaryOut, summary="Dataset summary")
def get_summary(session: DatasetSession = Depends(get_session)) -> DatasetSummaryOut:
    """Return the installed dataset's name, source, totals and counts."""
    dataset = session.dataset
    return DatasetSummaryOut(**dataset.summary(), warnings=dataset.warnings)
