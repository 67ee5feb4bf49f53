from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from FocusFlow.config import DEFAULT_REMINDER_TIMES

CORE_TASK_COUNT = 3
CORE_TASK_SLOTS = ("task1", "task2", "task3")

ENERGY_CATEGORIES = ("positive", "negative", "neutral")
EnergyCategory = Literal["positive", "negative", "neutral"]

TIME_OF_DAY_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

# Field named `date` would shadow the type inside model bodies
CalendarDate = date


def normalize_time_of_day(value: str) -> str:
    """Validate an ``H:MM``/``HH:MM`` string and return it zero-padded."""
    if not isinstance(value, str) or not TIME_OF_DAY_RE.match(value.strip()):
        raise ValueError("Invalid time format (HH:MM)")
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


class FocusFlowModel(BaseModel):
    """Base for all records: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Identity & profile ---

class AuthUser(FocusFlowModel):
    """
    The identity handed over by the sign-in provider.
    """
    uid: str = Field(..., min_length=1)
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")


class UserProfile(FocusFlowModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    core_tasks_set: bool = False
    reminder_times: List[str] = Field(default_factory=lambda: list(DEFAULT_REMINDER_TIMES))


class UserPreferences(FocusFlowModel):
    reminder_times: List[str] = Field(..., min_length=1)

    @field_validator("reminder_times")
    @classmethod
    def normalize_reminder_times(cls, value: List[str]) -> List[str]:
        # Ascending, de-duplicated; zero-padded HH:MM sorts correctly as text
        return sorted({normalize_time_of_day(raw) for raw in value})


# --- Core tasks ---

class CoreTask(FocusFlowModel):
    id: str = Field(..., min_length=1, description="Stable slot identifier, e.g. 'task1'")
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class CoreTaskSet(FocusFlowModel):
    """Exactly three core tasks with unique ids; validated before anything is persisted."""
    tasks: List[CoreTask]

    @field_validator("tasks")
    @classmethod
    def check_task_count(cls, value: List[CoreTask]) -> List[CoreTask]:
        if len(value) != CORE_TASK_COUNT:
            raise ValueError(f"Please define exactly {CORE_TASK_COUNT} core tasks.")
        ids = [task.id for task in value]
        if len(set(ids)) != len(ids):
            raise ValueError("Core task ids must be unique.")
        return value

    @classmethod
    def from_names(cls, names: List[str], colors: Optional[List[Optional[str]]] = None) -> "CoreTaskSet":
        """Build a set from bare names, assigning the stable slot ids in order."""
        colors = colors or [None] * len(names)
        slots = [CORE_TASK_SLOTS[i] if i < len(CORE_TASK_SLOTS) else f"task{i + 1}" for i in range(len(names))]
        return cls(tasks=[
            CoreTask(id=slot, name=name, color=color)
            for slot, name, color in zip(slots, names, colors)
        ])


# --- Planned tasks ---

class PlannedTask(FocusFlowModel):
    id: Optional[str] = None
    date: CalendarDate
    start_time: str
    end_time: str
    core_task_id: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value):
        return normalize_time_of_day(value)

    @model_validator(mode="after")
    def check_start_before_end(self):
        # Zero-padded HH:MM compares correctly as text
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self


class PlannedTaskUpdate(FocusFlowModel):
    date: Optional[CalendarDate] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    core_task_id: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value):
        if value is None:
            return value
        return normalize_time_of_day(value)

    @model_validator(mode="after")
    def check_start_before_end(self):
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self

    def apply_to(self, task: PlannedTask) -> PlannedTask:
        """Merge onto a stored task, re-running the full PlannedTask validation."""
        merged = task.model_dump()
        merged.update(self.model_dump(exclude_unset=True))
        return PlannedTask.model_validate(merged)


# --- Task logs ---

class TaskLogCreate(FocusFlowModel):
    core_task_id: str = Field(..., min_length=1)
    focus_level: int = Field(..., ge=1, le=5)
    energy_input: Optional[str] = None
    duration_minutes: Optional[float] = Field(default=None, gt=0)


class TaskLog(FocusFlowModel):
    id: Optional[str] = None
    timestamp: datetime = Field(..., description="UTC instant the log was written")
    core_task_id: str
    focus_level: Optional[int] = Field(default=None, ge=1, le=5)
    energy_input: Optional[str] = None
    energy_category: Optional[EnergyCategory] = None
    duration_minutes: Optional[float] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_datetime_utc(cls, v):
        if isinstance(v, str):
            return _as_utc(datetime.fromisoformat(v.replace("Z", "+00:00")))
        if isinstance(v, datetime):
            return _as_utc(v)
        raise ValueError("Invalid datetime format")
