# FocusFlow/database/store.py
"""
Record Store for FocusFlow.

`open_store()` hands back either a DuckDB-backed store or, when no database is
configured or it cannot be opened, an `UnavailableRecordStore` that logs a
warning and reads empty / writes nothing. Callers use one code path either way.
"""

import abc
import json
import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

import duckdb

from FocusFlow.config import DEFAULT_REMINDER_TIMES, Settings
from FocusFlow.database import get_connection, init_database
from FocusFlow.models import (
    CoreTask,
    CoreTaskSet,
    PlannedTask,
    PlannedTaskUpdate,
    TaskLog,
    TaskLogCreate,
    UserPreferences,
    UserProfile,
)

log = logging.getLogger(__name__)

STORE_UNAVAILABLE_MSG = "Record store is not initialized. Operation skipped."

PROFILE_COLUMNS = ("uid", "email", "display_name", "photo_url", "core_tasks_set", "reminder_times")
PLANNED_TASK_COLUMNS = ("id", "date", "start_time", "end_time", "core_task_id", "title", "description")
TASK_LOG_COLUMNS = (
    "id", "timestamp", "core_task_id", "focus_level", "energy_input", "energy_category", "duration_minutes",
)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return uuid.uuid4().hex


class RecordStore(abc.ABC):
    """All operations are scoped to a single user id."""

    available: bool = True

    # --- User profile ---
    @abc.abstractmethod
    def get_user_profile(self, uid: str) -> Optional[UserProfile]: ...

    @abc.abstractmethod
    def create_user_profile(self, profile: UserProfile) -> Optional[UserProfile]: ...

    @abc.abstractmethod
    def update_user_profile(self, uid: str, **fields: Any) -> Optional[UserProfile]: ...

    # --- Core tasks ---
    @abc.abstractmethod
    def get_core_tasks(self, uid: str) -> List[CoreTask]: ...

    @abc.abstractmethod
    def set_core_tasks(self, uid: str, core_tasks: CoreTaskSet) -> None: ...

    # --- Planned tasks ---
    @abc.abstractmethod
    def add_planned_task(self, uid: str, task: PlannedTask) -> Optional[str]: ...

    @abc.abstractmethod
    def get_planned_task(self, uid: str, task_id: str) -> Optional[PlannedTask]: ...

    @abc.abstractmethod
    def get_planned_tasks_for_date_range(self, uid: str, start_date: date, end_date: date) -> List[PlannedTask]: ...

    @abc.abstractmethod
    def update_planned_task(self, uid: str, task_id: str, update: PlannedTaskUpdate) -> Optional[PlannedTask]: ...

    @abc.abstractmethod
    def delete_planned_task(self, uid: str, task_id: str) -> bool: ...

    # --- Task logs ---
    @abc.abstractmethod
    def add_task_log(self, uid: str, entry: TaskLogCreate, energy_category: Optional[str] = None) -> Optional[str]: ...

    @abc.abstractmethod
    def get_task_logs_for_period(self, uid: str, start: datetime, end: datetime) -> List[TaskLog]: ...

    # --- Preferences ---
    def get_user_preferences(self, uid: str) -> UserPreferences:
        profile = self.get_user_profile(uid)
        if profile and profile.reminder_times:
            return UserPreferences(reminder_times=profile.reminder_times)
        return UserPreferences(reminder_times=list(DEFAULT_REMINDER_TIMES))

    def update_user_preferences(self, uid: str, prefs: UserPreferences) -> None:
        self.update_user_profile(uid, reminder_times=prefs.reminder_times)


class DuckDBRecordStore(RecordStore):
    """Stores every user's records in one DuckDB file; a connection per operation."""

    def __init__(self, db_path: Path, default_reminder_times: Optional[List[str]] = None):
        self.db_path = Path(db_path)
        self.default_reminder_times = list(default_reminder_times or DEFAULT_REMINDER_TIMES)
        init_database(self.db_path)
        log.info(f"Record store opened at {self.db_path}")

    def _connect(self):
        return get_connection(self.db_path)

    # --- User profile ---
    def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(PROFILE_COLUMNS)} FROM user_profiles WHERE uid = ?", [uid]
            ).fetchone()
        if row is None:
            return None
        data = dict(zip(PROFILE_COLUMNS, row))
        data["reminder_times"] = json.loads(data["reminder_times"]) if data["reminder_times"] else None
        if not data["reminder_times"]:
            data["reminder_times"] = list(self.default_reminder_times)
        data["core_tasks_set"] = bool(data["core_tasks_set"])
        return UserProfile.model_validate(data)

    def create_user_profile(self, profile: UserProfile) -> UserProfile:
        data = profile.model_dump()
        data["reminder_times"] = json.dumps(data["reminder_times"])
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO user_profiles ({', '.join(PROFILE_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?)",
                [data[col] for col in PROFILE_COLUMNS],
            )
        log.info(f"Created profile for user {profile.uid}")
        return profile

    def update_user_profile(self, uid: str, **fields: Any) -> UserProfile:
        unknown = set(fields) - set(PROFILE_COLUMNS[1:])
        if unknown:
            raise ValueError(f"Unknown profile field(s): {', '.join(sorted(unknown))}")

        existing = self.get_user_profile(uid)
        if existing is None:
            # Merge semantics: a missing profile is created from the given fields.
            return self.create_user_profile(UserProfile(uid=uid, **fields))

        merged = existing.model_copy(update=fields)
        # Re-validate so bad values never reach the table.
        merged = UserProfile.model_validate(merged.model_dump())
        if fields:
            assignments = ", ".join(f"{col} = ?" for col in fields)
            values = [
                json.dumps(merged.reminder_times) if col == "reminder_times" else getattr(merged, col)
                for col in fields
            ]
            with self._connect() as conn:
                conn.execute(f"UPDATE user_profiles SET {assignments} WHERE uid = ?", values + [uid])
        return merged

    # --- Core tasks ---
    def get_core_tasks(self, uid: str) -> List[CoreTask]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, name, color FROM core_tasks WHERE user_id = ? ORDER BY position", [uid]
            ).fetchall()
        return [CoreTask(id=row[0], name=row[1], color=row[2]) for row in rows]

    def set_core_tasks(self, uid: str, core_tasks: CoreTaskSet) -> None:
        """
        Replace the user's core tasks and flip `core_tasks_set` in one transaction.

        Either the whole new set plus the profile flag is committed, or nothing is.
        """
        with self._connect() as conn:
            conn.begin()
            try:
                conn.execute("DELETE FROM core_tasks WHERE user_id = ?", [uid])
                for position, task in enumerate(core_tasks.tasks):
                    conn.execute(
                        "INSERT INTO core_tasks (user_id, id, position, name, color) VALUES (?, ?, ?, ?, ?)",
                        [uid, task.id, position, task.name, task.color],
                    )
                updated = conn.execute(
                    "UPDATE user_profiles SET core_tasks_set = TRUE WHERE uid = ? RETURNING uid", [uid]
                ).fetchall()
                if not updated:
                    conn.execute(
                        f"INSERT INTO user_profiles ({', '.join(PROFILE_COLUMNS)}) VALUES (?, NULL, NULL, NULL, TRUE, ?)",
                        [uid, json.dumps(self.default_reminder_times)],
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                log.error(f"Failed to set core tasks for user {uid}; transaction rolled back.", exc_info=True)
                raise
        log.info(f"Saved {len(core_tasks.tasks)} core tasks for user {uid}")

    # --- Planned tasks ---
    def add_planned_task(self, uid: str, task: PlannedTask) -> str:
        task_id = _new_id()
        data = task.model_dump()
        data["id"] = task_id
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO planned_tasks (user_id, {', '.join(PLANNED_TASK_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [uid] + [data[col] for col in PLANNED_TASK_COLUMNS],
            )
        return task_id

    def _planned_from_row(self, row) -> PlannedTask:
        return PlannedTask.model_validate(dict(zip(PLANNED_TASK_COLUMNS, row)))

    def get_planned_task(self, uid: str, task_id: str) -> Optional[PlannedTask]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(PLANNED_TASK_COLUMNS)} FROM planned_tasks WHERE user_id = ? AND id = ?",
                [uid, task_id],
            ).fetchone()
        return self._planned_from_row(row) if row else None

    def get_planned_tasks_for_date_range(self, uid: str, start_date: date, end_date: date) -> List[PlannedTask]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {', '.join(PLANNED_TASK_COLUMNS)} FROM planned_tasks
                WHERE user_id = ? AND date >= ? AND date <= ?
                ORDER BY date, start_time
                """,
                [uid, start_date, end_date],
            ).fetchall()
        return [self._planned_from_row(row) for row in rows]

    def update_planned_task(self, uid: str, task_id: str, update: PlannedTaskUpdate) -> Optional[PlannedTask]:
        existing = self.get_planned_task(uid, task_id)
        if existing is None:
            return None
        merged = update.apply_to(existing)
        columns = PLANNED_TASK_COLUMNS[1:]
        with self._connect() as conn:
            conn.execute(
                f"UPDATE planned_tasks SET {', '.join(f'{col} = ?' for col in columns)} WHERE user_id = ? AND id = ?",
                [getattr(merged, col) for col in columns] + [uid, task_id],
            )
        return merged

    def delete_planned_task(self, uid: str, task_id: str) -> bool:
        with self._connect() as conn:
            deleted = conn.execute(
                "DELETE FROM planned_tasks WHERE user_id = ? AND id = ? RETURNING id", [uid, task_id]
            ).fetchall()
        return bool(deleted)

    # --- Task logs ---
    def add_task_log(self, uid: str, entry: TaskLogCreate, energy_category: Optional[str] = None) -> str:
        log_id = _new_id()
        record = TaskLog(
            id=log_id,
            timestamp=datetime.now(timezone.utc),
            core_task_id=entry.core_task_id,
            focus_level=entry.focus_level,
            energy_input=entry.energy_input,
            energy_category=energy_category,
            duration_minutes=entry.duration_minutes,
        )
        data = record.model_dump()
        data["timestamp"] = _to_naive_utc(record.timestamp)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO task_logs (user_id, {', '.join(TASK_LOG_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [uid] + [data[col] for col in TASK_LOG_COLUMNS],
            )
        return log_id

    def get_task_logs_for_period(self, uid: str, start: datetime, end: datetime) -> List[TaskLog]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {', '.join(TASK_LOG_COLUMNS)} FROM task_logs
                WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
                ORDER BY timestamp
                """,
                [uid, _to_naive_utc(start), _to_naive_utc(end)],
            ).fetchall()
        return [TaskLog.model_validate(dict(zip(TASK_LOG_COLUMNS, row))) for row in rows]

    def get_user_preferences(self, uid: str) -> UserPreferences:
        profile = self.get_user_profile(uid)
        if profile and profile.reminder_times:
            return UserPreferences(reminder_times=profile.reminder_times)
        return UserPreferences(reminder_times=list(self.default_reminder_times))


class UnavailableRecordStore(RecordStore):
    """Reads return empty results and writes are skipped, each with a logged warning."""

    available = False

    def __init__(self, reason: str = "no database configured"):
        self.reason = reason

    def _skip(self, operation: str) -> None:
        log.warning(f"{STORE_UNAVAILABLE_MSG} ({operation}; {self.reason})")

    def get_user_profile(self, uid):
        self._skip("get_user_profile")
        return None

    def create_user_profile(self, profile):
        self._skip("create_user_profile")
        return None

    def update_user_profile(self, uid, **fields):
        self._skip("update_user_profile")
        return None

    def get_core_tasks(self, uid):
        self._skip("get_core_tasks")
        return []

    def set_core_tasks(self, uid, core_tasks):
        self._skip("set_core_tasks")

    def add_planned_task(self, uid, task):
        self._skip("add_planned_task")
        return None

    def get_planned_task(self, uid, task_id):
        self._skip("get_planned_task")
        return None

    def get_planned_tasks_for_date_range(self, uid, start_date, end_date):
        self._skip("get_planned_tasks_for_date_range")
        return []

    def update_planned_task(self, uid, task_id, update):
        self._skip("update_planned_task")
        return None

    def delete_planned_task(self, uid, task_id):
        self._skip("delete_planned_task")
        return False

    def add_task_log(self, uid, entry, energy_category=None):
        self._skip("add_task_log")
        return None

    def get_task_logs_for_period(self, uid, start, end):
        self._skip("get_task_logs_for_period")
        return []

    def get_user_preferences(self, uid):
        self._skip("get_user_preferences")
        return UserPreferences(reminder_times=list(DEFAULT_REMINDER_TIMES))

    def update_user_preferences(self, uid, prefs):
        self._skip("update_user_preferences")


def open_store(settings: Settings) -> RecordStore:
    if settings.database_path is None:
        log.warning("No database path configured. Running with an unavailable record store.")
        return UnavailableRecordStore()
    try:
        return DuckDBRecordStore(settings.database_path, settings.default_reminder_times)
    except (duckdb.Error, OSError) as e:
        log.error(f"Failed to open record store at {settings.database_path}: {e}")
        return UnavailableRecordStore(reason=str(e))
