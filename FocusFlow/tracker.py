# FocusFlow/tracker.py
"""
Tracker service: the operations a signed-in user performs.

Ties the session, the record store, the aggregator and the AI flows together.
AI failures never escape this layer; they are replaced by fixed messages.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, Union

from pydantic import Field

from FocusFlow.ai.client import AIClient, FlowError
from FocusFlow.ai.flows import CATEGORIZE_ENERGY, PRODUCTIVITY_SUGGESTIONS, WEEKLY_SUMMARY
from FocusFlow.analytics.aggregator import AnalyticsSnapshot, build_analytics, serialize_for_prompt
from FocusFlow.config import Settings
from FocusFlow.database.store import RecordStore
from FocusFlow.models import (
    ENERGY_CATEGORIES,
    CoreTask,
    CoreTaskSet,
    FocusFlowModel,
    PlannedTask,
    PlannedTaskUpdate,
    TaskLog,
    TaskLogCreate,
    UserPreferences,
)
from FocusFlow.session import Session

log = logging.getLogger(__name__)

NO_DATA_SUMMARY = "No summary available due to insufficient data."
NO_DATA_SUGGESTIONS = ["Not enough data for suggestions yet. Keep logging your tasks!"]
SUMMARY_FAILED = "Failed to generate weekly summary."
SUGGESTIONS_FAILED = ["Could not fetch suggestions at this time."]
DEFAULT_PREFERENCES_TEXT = "Default schedule"


class UnknownCoreTaskError(ValueError):
    pass


class PlannedTaskNotFoundError(LookupError):
    pass


class WeeklyInsights(FocusFlowModel):
    start_date: date
    end_date: date
    summary: str
    suggestions: List[str] = Field(default_factory=list)
    generated: bool = False


class Dashboard(FocusFlowModel):
    needs_onboarding: bool
    core_tasks: List[CoreTask]
    planned_tasks: List[PlannedTask]
    task_logs: List[TaskLog]
    analytics: AnalyticsSnapshot


def week_bounds(day: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 (UTC) of the week containing `day`."""
    monday = day - timedelta(days=day.weekday())
    sunday = monday + timedelta(days=6)
    return (
        datetime.combine(monday, time.min, tzinfo=timezone.utc),
        datetime.combine(sunday, time.max, tzinfo=timezone.utc),
    )


def month_bounds(day: date) -> Tuple[date, date]:
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def today() -> date:
    """Current calendar day in UTC."""
    return datetime.now(timezone.utc).date()


class Tracker:
    def __init__(self, session: Session, store: RecordStore, ai_client: AIClient, settings: Optional[Settings] = None):
        self.session = session
        self.store = store
        self.ai_client = ai_client
        self.settings = settings or Settings()

    @property
    def uid(self) -> str:
        return self.session.require_user().uid

    # --- Core tasks ---

    def get_core_tasks(self) -> List[CoreTask]:
        return self.store.get_core_tasks(self.uid)

    def needs_onboarding(self) -> bool:
        profile = self.session.profile
        return profile is not None and not profile.core_tasks_set

    def set_core_tasks(self, tasks: Union[CoreTaskSet, Iterable[Union[CoreTask, dict]]]) -> CoreTaskSet:
        """
        Replace the user's three core tasks.

        Raises pydantic.ValidationError for anything but exactly three valid
        tasks; in that case the store is never touched.
        """
        uid = self.uid
        core_tasks = tasks if isinstance(tasks, CoreTaskSet) else CoreTaskSet(tasks=list(tasks))
        self.store.set_core_tasks(uid, core_tasks)
        if self.store.available and self.session.profile is not None:
            self.session.refresh_profile()
        return core_tasks

    def _check_core_task(self, core_task_id: str) -> None:
        if not self.store.available:
            return
        known = {task.id for task in self.store.get_core_tasks(self.uid)}
        if core_task_id not in known:
            raise UnknownCoreTaskError(f"Unknown core task '{core_task_id}'.")

    # --- Planned tasks ---

    def plan_task(self, task: PlannedTask) -> Optional[str]:
        self._check_core_task(task.core_task_id)
        task_id = self.store.add_planned_task(self.uid, task)
        log.debug(f"Planned task {task_id} on {task.date} {task.start_time}-{task.end_time}")
        return task_id

    def planned_tasks_between(self, start_date: date, end_date: date) -> List[PlannedTask]:
        return self.store.get_planned_tasks_for_date_range(self.uid, start_date, end_date)

    def update_planned_task(self, task_id: str, update: PlannedTaskUpdate) -> Optional[PlannedTask]:
        if update.core_task_id is not None:
            self._check_core_task(update.core_task_id)
        updated = self.store.update_planned_task(self.uid, task_id, update)
        if updated is None and self.store.available:
            raise PlannedTaskNotFoundError(f"Planned task '{task_id}' not found.")
        return updated

    def delete_planned_task(self, task_id: str) -> None:
        deleted = self.store.delete_planned_task(self.uid, task_id)
        if not deleted and self.store.available:
            raise PlannedTaskNotFoundError(f"Planned task '{task_id}' not found.")

    # --- Task logs ---

    def categorize_energy(self, energy_input: str) -> Optional[str]:
        """Best-effort energy category; None when the AI call fails or answers off-scale."""
        try:
            result = CATEGORIZE_ENERGY.run(self.ai_client, {"energy_input": energy_input})
        except FlowError as e:
            log.warning(f"Could not auto-categorize energy input: {e}")
            return None
        category = result.category.strip().lower()
        if category not in ENERGY_CATEGORIES:
            log.warning(f"Ignoring unexpected energy category '{result.category}'.")
            return None
        return category

    def log_task(self, entry: TaskLogCreate) -> Optional[str]:
        self._check_core_task(entry.core_task_id)
        category = None
        if entry.energy_input and entry.energy_input.strip():
            category = self.categorize_energy(entry.energy_input.strip())
        log_id = self.store.add_task_log(self.uid, entry, energy_category=category)
        log.info(f"Logged focus {entry.focus_level} for {entry.core_task_id} (category: {category})")
        return log_id

    def task_logs_between(self, start: datetime, end: datetime) -> List[TaskLog]:
        return self.store.get_task_logs_for_period(self.uid, start, end)

    # --- Views ---

    def analytics(self, day: Optional[date] = None) -> AnalyticsSnapshot:
        start, end = week_bounds(day or today())
        return build_analytics(self.get_core_tasks(), self.task_logs_between(start, end))

    def dashboard(self, day: Optional[date] = None) -> Dashboard:
        day = day or today()
        core_tasks = self.get_core_tasks()
        month_start, month_end = month_bounds(day)
        week_start, week_end = week_bounds(day)
        logs = self.task_logs_between(week_start, week_end)
        return Dashboard(
            needs_onboarding=self.needs_onboarding(),
            core_tasks=core_tasks,
            planned_tasks=self.planned_tasks_between(month_start, month_end),
            task_logs=logs,
            analytics=build_analytics(core_tasks, logs),
        )

    def _preferences_text(self) -> str:
        profile = self.session.profile
        if profile is not None and profile.reminder_times:
            return ", ".join(profile.reminder_times)
        return DEFAULT_PREFERENCES_TEXT

    def weekly_insights(self, day: Optional[date] = None) -> WeeklyInsights:
        """
        AI summary and suggestions for the week containing `day`.

        Never raises for AI problems: failures become the fixed fallback
        messages. One call per invocation; retrying means calling again.
        """
        uid = self.uid
        week_start, week_end = week_bounds(day or today())
        insights = WeeklyInsights(start_date=week_start.date(), end_date=week_end.date(), summary=NO_DATA_SUMMARY,
                                  suggestions=list(NO_DATA_SUGGESTIONS))

        logs = self.task_logs_between(week_start, week_end)
        if not logs:
            log.info(f"No task logs for week {insights.start_date}; skipping AI summary.")
            return insights

        try:
            summary = WEEKLY_SUMMARY.run(self.ai_client, {
                "user_id": uid,
                "start_date": insights.start_date.isoformat(),
                "end_date": insights.end_date.isoformat(),
                "task_logs": serialize_for_prompt(logs),
            })
        except FlowError as e:
            log.error(f"AI weekly summary failed: {e}")
            insights.summary = SUMMARY_FAILED
            insights.suggestions = list(SUGGESTIONS_FAILED)
            return insights

        insights.summary = summary.summary
        insights.generated = True
        try:
            suggestions = PRODUCTIVITY_SUGGESTIONS.run(self.ai_client, {
                "weekly_summary": summary.summary,
                "user_preferences": self._preferences_text(),
            })
            insights.suggestions = suggestions.suggestions
        except FlowError as e:
            # The generated summary is kept; only the suggestions fall back.
            log.error(f"AI suggestions failed: {e}")
            insights.suggestions = list(SUGGESTIONS_FAILED)
        return insights

    # --- Preferences ---

    def get_preferences(self) -> UserPreferences:
        return self.store.get_user_preferences(self.uid)

    def update_preferences(self, prefs: UserPreferences) -> UserPreferences:
        self.store.update_user_preferences(self.uid, prefs)
        if self.store.available and self.session.profile is not None:
            self.session.profile = self.session.profile.model_copy(update={"reminder_times": prefs.reminder_times})
        return prefs
