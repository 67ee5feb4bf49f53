import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from FocusFlow.ai.client import AIClient
from FocusFlow.config import Settings
from FocusFlow.database.store import DuckDBRecordStore
from FocusFlow.models import AuthUser, CoreTask, CoreTaskSet, TaskLog
from FocusFlow.session import Session
from FocusFlow.tracker import Tracker


@pytest.fixture(autouse=True)
def no_ai_key_in_env(monkeypatch):
    for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "FOCUSFLOW_GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path):
    return Settings(database_path=tmp_path / "focusflow.db", google_api_key=None)


@pytest.fixture
def store(settings):
    return DuckDBRecordStore(settings.database_path)


@pytest.fixture
def ai_client():
    client = MagicMock(spec=AIClient)
    client.available = True
    return client


@pytest.fixture
def session(store):
    s = Session(store)
    s.sign_in(AuthUser(uid="user-1", email="ada@example.com", display_name="Ada"))
    return s


@pytest.fixture
def tracker(session, store, ai_client, settings):
    return Tracker(session, store, ai_client, settings)


@pytest.fixture
def core_tasks():
    return [
        CoreTask(id="task1", name="Deep Work"),
        CoreTask(id="task2", name="Admin", color="#123456"),
        CoreTask(id="task3", name="Learning"),
    ]


@pytest.fixture
def core_task_set(core_tasks):
    return CoreTaskSet(tasks=core_tasks)


def make_log(core_task_id, focus_level, minute=0, **extra):
    return TaskLog(
        timestamp=datetime(2025, 6, 2, 9, minute, tzinfo=timezone.utc),
        core_task_id=core_task_id,
        focus_level=focus_level,
        **extra,
    )


def gemini_reply(payload) -> str:
    return json.dumps(payload)
