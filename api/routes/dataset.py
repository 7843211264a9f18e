"""
Dataset endpoints: replace the installed dataset and report on its quality.

POST /api/v1/dataset          body is the dataset JSON document
POST /api/v1/dataset/reload   reload the default file (demo set on failure)
GET  /api/v1/validation       reconciliation checks on the installed tree

A rejected upload (invalid JSON, cyclic or over-deep tree) returns 400 with
the parser's diagnostic and leaves the current dataset and navigation
position untouched.  A successful load resets navigation to the new root.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_config, get_session
from api.models import DatasetLoadOut, ValidationReportOut
from budget_tree.dataset import Dataset, DatasetSession
from utils.config import AppConfig
from utils.validation import validate_tree

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dataset"])


def _loaded(dataset: Dataset) -> DatasetLoadOut:
    return DatasetLoadOut(
        name=dataset.name,
        source=dataset.source,
        is_demo=dataset.is_demo,
        installed=dataset.installed,
        node_count=len(dataset.index),
        warnings=dataset.warnings,
    )


@router.post(
    "/dataset",
    response_model=DatasetLoadOut,
    summary="Replace the dataset",
    responses={400: {"description": "Invalid JSON or malformed tree; dataset unchanged"}},
)
async def upload_dataset(request: Request) -> DatasetLoadOut:
    """Install the JSON document in the request body as the new dataset."""
    session: DatasetSession = request.app.state.session
    body = await request.body()
    dataset = session.load_text(body, source="upload")
    return _loaded(dataset)


@router.post("/dataset/reload", response_model=DatasetLoadOut, summary="Reload the default dataset")
def reload_dataset(
    request: Request,
    config: AppConfig = Depends(get_config),
) -> DatasetLoadOut:
    session: DatasetSession = request.app.state.session
    return _loaded(session.load_default(config.data_path))


@router.get("/validation", response_model=ValidationReportOut, summary="Dataset validation report")
def validation_report(session: DatasetSession = Depends(get_session)) -> ValidationReportOut:
    """Run the reconciliation checks (explicit totals, duplicate names, ...)."""
    result = validate_tree(session.root)
    return ValidationReportOut(**result.to_dict())
