"""
Request dependencies for the API.

The DatasetSession, NotesStore and AppConfig live on ``app.state`` and are
created by create_app(), one set per application instance.  Routes receive
them through Depends() so tests can build an app around their own session.
"""

from fastapi import HTTPException, Request

from budget_tree.dataset import DatasetSession
from budget_tree.navigator import Navigator
from budget_tree.notes import NotesStore
from utils.config import AppConfig


def get_session(request: Request) -> DatasetSession:
    """Return the app's dataset session; 503 if nothing is installed yet."""
    session: DatasetSession = request.app.state.session
    if not session.is_loaded:
        raise HTTPException(status_code=503, detail="No dataset loaded")
    return session


def get_navigator(request: Request) -> Navigator:
    """Return the navigator of the currently installed dataset."""
    return get_session(request).navigator


def get_notes(request: Request) -> NotesStore:
    return request.app.state.notes


def get_config(request: Request) -> AppConfig:
    return request.app.state.config
