"""
GET /api/v1/search endpoint.

Matches node names case-insensitively against the dataset's search index:
exact name matches first, then substring matches, each group in dataset
(pre-order) order.  ``match`` is the entry a "go to" action would use.

A blank query is a 400; a query that matches nothing is a 404.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_navigator
from api.models import SearchEntryOut, SearchResponse
from budget_tree.aggregator import percentage_share
from budget_tree.models import SearchIndexEntry
from budget_tree.navigator import Navigator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def entry_out(entry: SearchIndexEntry) -> SearchEntryOut:
    return SearchEntryOut(
        name=entry.name,
        path=list(entry.path),
        path_str=entry.path_str,
        total=entry.total,
        parent_total=entry.parent_total,
        share=percentage_share(entry.total, entry.parent_total),
    )


@router.get(
    "",
    response_model=SearchResponse,
    summary="Search nodes by name",
    responses={
        400: {"description": "Empty query"},
        404: {"description": "No node matches the query"},
    },
)
def search(
    q: str = Query(..., description="Name or part of a name", examples=["Ministry of Finance"]),
    limit: int = Query(20, ge=1, le=500, description="Maximum candidates returned"),
    navigator: Navigator = Depends(get_navigator),
) -> SearchResponse:
    """Search the index; InvalidQueryError (blank query) maps to 400."""
    results = navigator.search(q, limit=limit)
    if not results:
        logger.info("search miss q=%r", q)
        raise HTTPException(status_code=404, detail=f"No node matches {q.strip()!r}")
    return SearchResponse(
        query=q,
        match=entry_out(results[0]),
        total=len(results),
        results=[entry_out(e) for e in results],
    )
