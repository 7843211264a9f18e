"""
Navigation endpoints: drill-down, click selection, back and reset.

GET  /api/v1/navigation          current position
POST /api/v1/navigation/drill    {path} or {query}; 404 on a miss
POST /api/v1/navigation/select   click semantics: only branches re-centre
POST /api/v1/navigation/back     pop one position; moved=false at the root
POST /api/v1/navigation/reset    clear history, back to the dataset root

Handlers that change position are ``async def`` so they run on the event
loop one at a time; the Navigator itself is not locked.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_navigator
from api.models import DrillRequest, NavigationStateOut, SelectRequest
from api.routes.tree import node_detail
from budget_tree.models import path_to_str
from budget_tree.navigator import Navigator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/navigation", tags=["navigation"])


def _state(navigator: Navigator, moved: bool | None = None,
           selected=None) -> NavigationStateOut:
    path = navigator.current_path
    return NavigationStateOut(
        path=list(path),
        path_str=path_to_str(path),
        depth=navigator.depth,
        can_go_back=navigator.can_go_back,
        moved=moved,
        node=node_detail(navigator, navigator.current_root, path),
        selected=selected,
    )


@router.get("", response_model=NavigationStateOut, summary="Current position")
def current(navigator: Navigator = Depends(get_navigator)) -> NavigationStateOut:
    return _state(navigator)


@router.post(
    "/drill",
    response_model=NavigationStateOut,
    summary="Drill to a node",
    responses={404: {"description": "Path or query not found; position unchanged"}},
)
async def drill(body: DrillRequest,
                navigator: Navigator = Depends(get_navigator)) -> NavigationStateOut:
    """Push the current position and re-centre on the requested node."""
    if body.query is not None:
        frame = navigator.drill_to_query(body.query)
        target = body.query
    else:
        frame = navigator.drill_to_path(body.path)
        target = body.path
    if frame is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {target}")
    return _state(navigator)


@router.post(
    "/select",
    response_model=NavigationStateOut,
    summary="Click on a node",
    responses={404: {"description": "Path not found; position unchanged"}},
)
async def select(body: SelectRequest,
                 navigator: Navigator = Depends(get_navigator)) -> NavigationStateOut:
    """Show the clicked node's details; re-centre only if it has children."""
    resolved = navigator.select(body.path)
    if resolved is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {body.path}")
    node, names = resolved
    return _state(navigator, selected=node_detail(navigator, node, names))


@router.post("/back", response_model=NavigationStateOut, summary="Go back")
async def back(navigator: Navigator = Depends(get_navigator)) -> NavigationStateOut:
    """Return to the previous position; ``moved`` is false when already at the start."""
    moved = navigator.go_back()
    return _state(navigator, moved=moved)


@router.post("/reset", response_model=NavigationStateOut, summary="Reset to root")
async def reset(navigator: Navigator = Depends(get_navigator)) -> NavigationStateOut:
    navigator.reset()
    return _state(navigator)
