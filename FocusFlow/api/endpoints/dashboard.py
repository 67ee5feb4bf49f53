from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from FocusFlow.analytics.aggregator import AnalyticsSnapshot
from FocusFlow.api.deps import TrackerDep
from FocusFlow.tracker import Dashboard, WeeklyInsights

router = APIRouter()

DayParam = Annotated[
    Optional[date],
    Query(description="Any day of the week to report on (YYYY-MM-DD). Defaults to today."),
]


@router.get("/analytics", response_model=AnalyticsSnapshot)
def read_analytics(tracker: TrackerDep, day: DayParam = None):
    return tracker.analytics(day)


@router.get("/dashboard", response_model=Dashboard)
def read_dashboard(tracker: TrackerDep, day: DayParam = None):
    return tracker.dashboard(day)


@router.post("/insights/weekly", response_model=WeeklyInsights)
def generate_weekly_insights(tracker: TrackerDep, day: DayParam = None):
    # Each POST is one fresh attempt; nothing is retried server-side.
    return tracker.weekly_insights(day)
