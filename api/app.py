"""
FastAPI application factory for the budget mind map.

Usage:
    python -m api.app                              # Dev server on port 8000
    BUDGET_DATA_PATH=data/my_budget.json python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The API is what a radial-diagram front end talks to: it serves the tree with
totals, node details, search and navigation, accepts dataset uploads, and
stores per-node notes.  Each app instance owns its own DatasetSession and
NotesStore (on ``app.state``), so several apps can run side by side.

Logging: one StreamHandler on the root logger, plain text or JSON lines
depending on BUDGET_LOG_FORMAT.  Every request is logged with a short
request id that is also returned in the X-Request-ID header.
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import dataset, navigation, notes, search, tree
from budget_tree.dataset import DatasetSession
from budget_tree.errors import NotesUnavailableError
from budget_tree.aggregator import count_nodes
from budget_tree.notes import JsonFileNotesStore, NotesStore
from utils.config import AppConfig

_logger = logging.getLogger("budget_mindmap_api")


# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def configure_logging(cfg: AppConfig) -> None:
    """Install a single root StreamHandler using the configured format."""
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(handlers=[handler], level=level, force=True)


def _error(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "status_code": status_code},
    )


def create_app(
    config: AppConfig | None = None,
    session: DatasetSession | None = None,
    notes_store: NotesStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings; defaults to AppConfig.from_env().
        session: Pre-loaded dataset session (useful for testing).  When
            omitted, a new session loads ``config.data_path``, falling back
            to the built-in demo dataset.
        notes_store: Notes backend; defaults to a JsonFileNotesStore at
            ``config.notes_path``.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or AppConfig.from_env()
    configure_logging(cfg)
    _logger.debug("settings: %s", json.dumps(cfg.to_dict(), default=str))

    if session is None:
        session = DatasetSession(max_depth=cfg.max_depth)
        session.load_default(cfg.data_path)
    if notes_store is None:
        notes_store = JsonFileNotesStore(cfg.notes_path)

    app = FastAPI(
        title="Budget Mind Map API",
        summary="Totals, shares, search, drill-down navigation and notes for a hierarchical budget.",
        description=(
            "## Budget Mind Map API\n\n"
            "Serves a hierarchical budget dataset (ministries → departments → "
            "programmes) to a radial-diagram front end.\n\n"
            "### Key concepts\n"
            "- **Total**: a node's explicit `value`, or the sum of its children "
            "when no value is given. Explicit values are never overridden.\n"
            "- **Share**: a node's total as a percentage of its parent's total, "
            "formatted with two decimals (`\"12.34\"`), or `\"—\"` when the "
            "parent total is zero or missing.\n"
            "- **Path**: root-to-node names joined by `/`, e.g. "
            "`/Thailand National Budget (FY2025)/Ministry of Finance`. Names are "
            "not unique; the first matching sibling wins.\n"
            "- **Navigation** keeps a back-stack: drill pushes, back pops, "
            "reset clears. Loading a dataset resets it."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "tree", "description": "Subtrees with totals, node details and dataset summary."},
            {"name": "search", "description": "Name search over the flattened index."},
            {"name": "navigation", "description": "Drill-down, click selection, back and reset."},
            {"name": "dataset", "description": "Dataset upload, reload and validation."},
            {"name": "notes", "description": "Per-node timestamped notes and export."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.config = cfg
    app.state.session = session
    app.state.notes = notes_store

    # ── CORS middleware ──────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ───────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its status, duration and a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, request.url.path, response.status_code,
                duration_ms, request_id,
            )
        return response

    # ── Error handling ───────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error path=%s", request.url.path)
        return _error(500, "Internal server error", str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        # Covers DatasetLoadError, InvalidQueryError and blank notes
        return _error(400, "Bad request", str(exc))

    @app.exception_handler(NotesUnavailableError)
    async def notes_unavailable_handler(request: Request, exc: NotesUnavailableError):
        _logger.warning("notes storage unavailable: %s", exc)
        return _error(503, "Notes storage unavailable", str(exc))

    # ── Health check ─────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 with the installed dataset's name and size."""
        if not session.is_loaded:
            return JSONResponse(status_code=503, content={"status": "no_dataset"})
        ds = session.dataset
        return {
            "status": "ok",
            "dataset": ds.name,
            "source": ds.source,
            "is_demo": ds.is_demo,
            "nodes": count_nodes(ds.root),
        }

    # ── Register routers ─────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(tree.router,       prefix=prefix)
    app.include_router(search.router,     prefix=prefix)
    app.include_router(navigation.router, prefix=prefix)
    app.include_router(dataset.router,    prefix=prefix)
    app.include_router(notes.router,      prefix=prefix)

    return app


if __name__ == "__main__":
    import uvicorn

    _cfg = AppConfig.from_env()
    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
