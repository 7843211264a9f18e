"""
Pydantic request/response models for the budget mind map API.

Amounts are plain numbers in the dataset's currency (THB for the bundled
dataset).  Shares are two-decimal percentage strings such as "12.34", or
"—" when the base is zero or missing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


# ── Tree models ───────────────────────────────────────────────────────────────

class TreeNodeOut(BaseModel):
    """A canonical node with its derived total, as consumed by the renderer."""
    name: str = Field(..., description="Display label", examples=["Ministry of Finance"])
    value: float | None = Field(None, description="Explicit allocation, or null when derived")
    desc: str = Field("", description="Free-text description")
    total: float | None = Field(None, description="Explicit value or sum of children", examples=[283_000_000_000.0])
    share: str = Field(..., description="Share of the parent's total", examples=["8.13"])
    truncated: bool = Field(False, description="True when children were omitted by the depth limit")
    children: list[TreeNodeOut] = Field(default_factory=list, description="Child nodes in dataset order")


class TreeResponse(BaseModel):
    """Response body for GET /api/v1/tree."""
    path: list[str] = Field(..., description="Root-to-node names of the returned subtree")
    path_str: str = Field(..., description="Path joined as /A/B", examples=["/Thailand National Budget (FY2025)"])
    meta: dict[str, Any] | None = Field(None, description="Dataset metadata (root only)")
    tree: TreeNodeOut


class ChildShareOut(BaseModel):
    """One direct child of a node and its share of the node's total."""
    name: str
    total: float | None = None
    share: str = Field(..., examples=["25.00"])
    has_children: bool = False


class NodeDetailOut(BaseModel):
    """Details panel for one node."""
    name: str = Field(..., examples=["Ministry of Finance"])
    path: list[str]
    path_str: str = Field(..., examples=["/Thailand National Budget (FY2025)/Ministry of Finance"])
    desc: str = ""
    value: float | None = None
    total: float | None = None
    parent_total: float | None = None
    share: str = Field(..., description="Share of the parent's total", examples=["8.13"])
    leaf_count: int = Field(..., description="Programmes (leaves) under this node", examples=[12])
    node_count: int = Field(..., description="This node plus all descendants", examples=[17])
    children: list[ChildShareOut] = Field(default_factory=list)


class DatasetSummaryOut(BaseModel):
    """Response body for GET /api/v1/summary."""
    name: str
    source: str = Field(..., description="File path, 'upload', or 'built-in demo'")
    is_demo: bool = False
    meta: dict[str, Any] | None = None
    total: float | None = None
    node_count: int
    leaf_count: int
    top_level_count: int
    warnings: list[str] = Field(default_factory=list, description="Load warnings, e.g. why the demo set is shown")


# ── Search models ─────────────────────────────────────────────────────────────

class SearchEntryOut(BaseModel):
    """A search index entry."""
    name: str
    path: list[str]
    path_str: str
    total: float | None = None
    parent_total: float | None = None
    share: str = Field(..., description="Share of the parent's total")


class SearchResponse(BaseModel):
    """Response body for GET /api/v1/search."""
    query: str = Field(..., examples=["Ministry of Finance"])
    match: SearchEntryOut = Field(..., description="Best match: exact name first, then first substring match")
    total: int = Field(..., description="Number of candidates returned")
    results: list[SearchEntryOut] = Field(..., description="All candidates, exact matches first")


# ── Navigation models ─────────────────────────────────────────────────────────

class DrillRequest(BaseModel):
    """Body for POST /api/v1/navigation/drill: exactly one of path or query."""
    path: list[str] | str | None = Field(None, description="Names from the root, or '/A/B'")
    query: str | None = Field(None, description="Search query resolved with the search policy")

    @model_validator(mode="after")
    def _one_target(self) -> DrillRequest:
        if (self.path is None) == (self.query is None):
            raise ValueError("Provide exactly one of 'path' or 'query'")
        return self


class SelectRequest(BaseModel):
    """Body for POST /api/v1/navigation/select (a click on a node)."""
    path: list[str] | str = Field(..., description="Names from the root, or '/A/B'")


class NavigationStateOut(BaseModel):
    """Current navigation position."""
    path: list[str]
    path_str: str
    depth: int = Field(..., description="Number of positions on the back-stack")
    can_go_back: bool
    moved: bool | None = Field(None, description="For back: whether the position changed")
    node: NodeDetailOut
    selected: NodeDetailOut | None = Field(None, description="For select: the clicked node")


# ── Notes models ──────────────────────────────────────────────────────────────

class NoteIn(BaseModel):
    """Body for POST /api/v1/notes."""
    path: list[str] | str = Field(..., description="Node path the note belongs to")
    text: str = Field(..., description="Note text (must not be blank)")


class NoteOut(BaseModel):
    text: str
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")


class NotesOut(BaseModel):
    """Notes for one node path; also the export document shape."""
    path: str = Field(..., examples=["/Thailand National Budget (FY2025)/Ministry of Finance"])
    notes: list[NoteOut]


# ── Dataset / validation models ───────────────────────────────────────────────

class DatasetLoadOut(BaseModel):
    """Response body after installing a dataset."""
    name: str
    source: str
    is_demo: bool = False
    installed: bool = Field(True, description="False when a newer load superseded this one; the current dataset is unchanged")
    node_count: int
    warnings: list[str] = Field(default_factory=list)


class ValidationIssueOut(BaseModel):
    check: str
    severity: str = Field(..., examples=["warning"])
    detail: str
    sample: str | None = None
    count: int = 1


class ValidationReportOut(BaseModel):
    """Response body for GET /api/v1/validation."""
    passed_checks: list[str]
    failed_checks: list[str]
    issues: list[ValidationIssueOut]
    summary: dict[str, int]


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])


TreeNodeOut.model_rebuild()
