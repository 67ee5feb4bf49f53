import json
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from FocusFlow.ai.client import FlowError, UnavailableAIClient
from FocusFlow.database.store import UnavailableRecordStore
from FocusFlow.models import AuthUser, CoreTask, PlannedTask, PlannedTaskUpdate, TaskLogCreate, UserPreferences
from FocusFlow.session import NotSignedInError, Session
from FocusFlow.tracker import (
    NO_DATA_SUGGESTIONS,
    NO_DATA_SUMMARY,
    SUGGESTIONS_FAILED,
    SUMMARY_FAILED,
    PlannedTaskNotFoundError,
    Tracker,
    UnknownCoreTaskError,
    month_bounds,
    week_bounds,
)

TODAY = datetime.now(timezone.utc).date()


def _log(tracker, task_id, focus, energy=None):
    return tracker.log_task(TaskLogCreate(core_task_id=task_id, focus_level=focus, energy_input=energy))


def test_week_bounds_monday_to_sunday():
    start, end = week_bounds(date(2025, 6, 4))  # a Wednesday
    assert start == datetime(2025, 6, 2, tzinfo=timezone.utc)
    assert end == datetime(2025, 6, 8, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert week_bounds(date(2025, 6, 2))[0] == start
    assert week_bounds(date(2025, 6, 8))[0] == start


def test_month_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


# --- Core tasks ---

def test_set_core_tasks_marks_profile(tracker, core_tasks, store):
    assert tracker.needs_onboarding() is True
    tracker.set_core_tasks(core_tasks)
    assert tracker.needs_onboarding() is False
    assert tracker.session.profile.core_tasks_set is True
    assert store.get_user_profile("user-1").core_tasks_set is True
    assert [t.id for t in tracker.get_core_tasks()] == ["task1", "task2", "task3"]


@pytest.mark.parametrize("count", [0, 2, 4])
def test_wrong_core_task_count_rejected_before_persistence(tracker, store, count):
    tasks = [CoreTask(id=f"task{i + 1}", name=f"Task {i + 1}") for i in range(count)]
    with pytest.raises(ValidationError):
        tracker.set_core_tasks(tasks)
    assert store.get_core_tasks("user-1") == []
    assert store.get_user_profile("user-1").core_tasks_set is False
    assert tracker.session.profile.core_tasks_set is False


def test_requires_signed_in_user(tracker, core_tasks):
    tracker.session.sign_out()
    with pytest.raises(NotSignedInError):
        tracker.set_core_tasks(core_tasks)


# --- Planned tasks ---

def test_plan_and_update_task(tracker, core_task_set):
    tracker.set_core_tasks(core_task_set)
    task_id = tracker.plan_task(PlannedTask(date=TODAY, start_time="09:00", end_time="10:00", core_task_id="task1"))
    updated = tracker.update_planned_task(task_id, PlannedTaskUpdate(core_task_id="task3", title="Course"))
    assert (updated.core_task_id, updated.title) == ("task3", "Course")
    assert tracker.planned_tasks_between(TODAY, TODAY)[0].title == "Course"

    tracker.delete_planned_task(task_id)
    with pytest.raises(PlannedTaskNotFoundError):
        tracker.delete_planned_task(task_id)
    with pytest.raises(PlannedTaskNotFoundError):
        tracker.update_planned_task(task_id, PlannedTaskUpdate(title="gone"))


def test_plan_task_rejects_unknown_core_task(tracker, core_task_set):
    tracker.set_core_tasks(core_task_set)
    with pytest.raises(UnknownCoreTaskError):
        tracker.plan_task(PlannedTask(date=TODAY, start_time="09:00", end_time="10:00", core_task_id="task9"))
    assert tracker.planned_tasks_between(TODAY, TODAY) == []


# --- Task logs ---

def test_log_task_with_categorized_energy(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    ai_client.generate_json.return_value = json.dumps({"category": "Positive ", "confidence": 0.8})
    _log(tracker, "task1", 4, energy="  in the zone  ")

    logs = tracker.task_logs_between(*week_bounds(TODAY))
    assert logs[0].energy_category == "positive"
    assert logs[0].energy_input == "  in the zone  "
    assert "User Input: in the zone" in ai_client.generate_json.call_args.args[0]


def test_log_task_keeps_long_energy_note(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    ai_client.generate_json.return_value = json.dumps({"category": "neutral", "confidence": 0.6})
    note = "steady afternoon, " * 60
    assert _log(tracker, "task3", 3, energy=note) is not None
    logs = tracker.task_logs_between(*week_bounds(TODAY))
    assert logs[0].energy_input == note
    assert logs[0].energy_category == "neutral"


def test_log_task_without_energy_skips_ai(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task2", 3, energy="   ")
    ai_client.generate_json.assert_not_called()
    assert tracker.task_logs_between(*week_bounds(TODAY))[0].energy_category is None


@pytest.mark.parametrize("reply", [FlowError("quota"), '{"category": "sleepy", "confidence": 0.5}'])
def test_categorizer_failure_does_not_block_log(tracker, core_task_set, ai_client, reply):
    tracker.set_core_tasks(core_task_set)
    if isinstance(reply, Exception):
        ai_client.generate_json.side_effect = reply
    else:
        ai_client.generate_json.return_value = reply
    assert _log(tracker, "task1", 2, energy="meh") is not None
    logs = tracker.task_logs_between(*week_bounds(TODAY))
    assert len(logs) == 1
    assert logs[0].energy_category is None


def test_log_task_rejects_unknown_core_task(tracker, core_task_set):
    tracker.set_core_tasks(core_task_set)
    with pytest.raises(UnknownCoreTaskError):
        _log(tracker, "nope", 3)
    assert tracker.task_logs_between(*week_bounds(TODAY)) == []


# --- Analytics & dashboard ---

def test_analytics_end_to_end(tracker, core_task_set):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task1", 5)
    _log(tracker, "task1", 3)
    _log(tracker, "task2", 1)

    snapshot = tracker.analytics(TODAY)
    assert [(s.task_name, s.estimated_minutes) for s in snapshot.time_distribution] == [("Deep Work", 60), ("Admin", 30)]
    assert [f.average_focus for f in snapshot.average_focus] == [4.0, 1.0, 0.0]


def test_dashboard(tracker, core_task_set):
    tracker.set_core_tasks(core_task_set)
    tracker.plan_task(PlannedTask(date=TODAY, start_time="09:00", end_time="10:00", core_task_id="task1"))
    _log(tracker, "task3", 4)
    board = tracker.dashboard(TODAY)
    assert board.needs_onboarding is False
    assert len(board.core_tasks) == 3
    assert len(board.planned_tasks) == 1
    assert len(board.task_logs) == 1
    assert board.analytics.has_data is True


# --- Weekly insights ---

def test_weekly_insights_without_logs_skips_ai(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    insights = tracker.weekly_insights(TODAY)
    assert insights.summary == NO_DATA_SUMMARY
    assert insights.suggestions == NO_DATA_SUGGESTIONS
    ai_client.generate_json.assert_not_called()


def test_weekly_insights_success(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task1", 4)
    ai_client.generate_json.side_effect = [
        json.dumps({"summary": "Mostly deep work.", "suggestions": "Keep mornings free."}),
        json.dumps({"suggestions": ["Block 9-11 for deep work"]}),
    ]
    insights = tracker.weekly_insights(TODAY)
    assert insights.generated is True
    assert insights.summary == "Mostly deep work."
    assert insights.suggestions == ["Block 9-11 for deep work"]

    summary_prompt, suggestions_prompt = [c.args[0] for c in ai_client.generate_json.call_args_list]
    assert f"Start Date: {insights.start_date.isoformat()}" in summary_prompt
    assert '"taskId":"task1"' in summary_prompt
    assert "User Preferences: 09:00, 12:00, 15:00, 18:00, 21:00" in suggestions_prompt


def test_weekly_insights_summary_failure_uses_fallback(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task1", 4)
    ai_client.generate_json.side_effect = FlowError("quota exceeded")
    insights = tracker.weekly_insights(TODAY)
    assert insights.summary == "Failed to generate weekly summary."
    assert insights.summary == SUMMARY_FAILED
    assert insights.suggestions == SUGGESTIONS_FAILED
    assert insights.generated is False
    # No automatic retry
    assert ai_client.generate_json.call_count == 1


def test_weekly_insights_with_unconfigured_ai(session, store, settings, core_task_set):
    tracker = Tracker(session, store, UnavailableAIClient(), settings)
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task2", 3, energy="tired")
    assert tracker.task_logs_between(*week_bounds(TODAY))[0].energy_category is None
    assert tracker.weekly_insights(TODAY).summary == SUMMARY_FAILED


def test_weekly_insights_suggestion_failure_keeps_summary(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task1", 4)
    ai_client.generate_json.side_effect = [
        json.dumps({"summary": "Fine week.", "suggestions": "n/a"}),
        "garbage",
    ]
    insights = tracker.weekly_insights(TODAY)
    assert insights.summary == "Fine week."
    assert insights.suggestions == SUGGESTIONS_FAILED


def test_preferences_text_falls_back_to_default_schedule(tracker, core_task_set, ai_client):
    tracker.set_core_tasks(core_task_set)
    _log(tracker, "task1", 4)
    tracker.session.profile = None
    ai_client.generate_json.side_effect = [
        json.dumps({"summary": "s", "suggestions": "t"}),
        json.dumps({"suggestions": []}),
    ]
    tracker.weekly_insights(TODAY)
    assert "User Preferences: Default schedule" in ai_client.generate_json.call_args.args[0]


# --- Preferences ---

def test_update_preferences(tracker, store):
    tracker.update_preferences(UserPreferences(reminder_times=["07:30", "19:00"]))
    assert tracker.get_preferences().reminder_times == ["07:30", "19:00"]
    assert tracker.session.profile.reminder_times == ["07:30", "19:00"]


# --- Degraded store ---

def test_unavailable_store_never_crashes(ai_client, core_tasks):
    store = UnavailableRecordStore()
    session = Session(store)
    session.sign_in(AuthUser(uid="u1"))
    tracker = Tracker(session, store, ai_client)
    tracker.set_core_tasks(core_tasks)
    assert tracker.get_core_tasks() == []
    assert _log(tracker, "task1", 3) is None
    assert tracker.update_planned_task("p1", PlannedTaskUpdate(title="x")) is None
    tracker.delete_planned_task("p1")
    assert tracker.weekly_insights(TODAY).summary == NO_DATA_SUMMARY
    assert tracker.analytics(TODAY).has_data is False
