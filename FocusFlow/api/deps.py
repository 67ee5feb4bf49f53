from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status

from FocusFlow.ai.client import AIClient, create_ai_client
from FocusFlow.config import Settings
from FocusFlow.database.store import RecordStore, open_store
from FocusFlow.models import AuthUser
from FocusFlow.session import Session
from FocusFlow.tracker import Tracker


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def ensure_store(app: FastAPI) -> RecordStore:
    """The app-wide record store, opened on first use."""
    state = app.state
    if getattr(state, "store", None) is None:
        state.store = open_store(state.settings)
    return state.store


def ensure_ai_client(app: FastAPI) -> AIClient:
    state = app.state
    if getattr(state, "ai_client", None) is None:
        state.ai_client = create_ai_client(state.settings)
    return state.ai_client


def get_store(request: Request) -> RecordStore:
    return ensure_store(request.app)


def get_ai_client(request: Request) -> AIClient:
    return ensure_ai_client(request.app)


SettingsDep = Annotated[Settings, Depends(get_settings)]
StoreDep = Annotated[RecordStore, Depends(get_store)]
AIClientDep = Annotated[AIClient, Depends(get_ai_client)]


def get_session(
    store: StoreDep,
    settings: SettingsDep,
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_email: Annotated[Optional[str], Header()] = None,
    x_user_name: Annotated[Optional[str], Header()] = None,
):
    """
    Signs the caller in for the duration of one request.

    Identity comes from the sign-in provider in front of this API via the
    X-User-* headers; the session is signed out again when the request ends.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    session = Session(store, settings.default_reminder_times)
    session.sign_in(AuthUser(uid=x_user_id.strip(), email=x_user_email, display_name=x_user_name))
    try:
        yield session
    finally:
        session.sign_out()


SessionDep = Annotated[Session, Depends(get_session)]


def get_tracker(session: SessionDep, store: StoreDep, ai_client: AIClientDep, settings: SettingsDep) -> Tracker:
    return Tracker(session, store, ai_client, settings)


TrackerDep = Annotated[Tracker, Depends(get_tracker)]
