# FocusFlow/analytics/aggregator.py
"""
Analytics aggregation for FocusFlow.

Reduces a window of task logs plus the user's core tasks into chart-ready
series (time distribution, average focus) and into the JSON payload that is
sent to the weekly summary prompt. Everything here is pure: no I/O, no clock.
"""

import json
import logging
from datetime import timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Sequence, Tuple

import polars as pl
from pydantic import Field

from FocusFlow.models import CoreTask, FocusFlowModel, TaskLog

log = logging.getLogger(__name__)

# Each log stands for a fixed block of work until logs carry real durations.
MINUTES_PER_LOG = 30
TASK_COLORS = ['#0088FE', '#00C49F', '#FFBB28', '#FF8042', '#8884D8', '#82Ca9D']

NO_DATA_MESSAGE = "No data to display yet."


class TimeSlice(FocusFlowModel):
    task_name: str
    estimated_minutes: int
    color: str


class FocusAverage(FocusFlowModel):
    task_name: str
    average_focus: float


class AnalyticsSnapshot(FocusFlowModel):
    time_distribution: List[TimeSlice] = Field(default_factory=list)
    average_focus: List[FocusAverage] = Field(default_factory=list)
    has_data: bool = False
    message: str = NO_DATA_MESSAGE


def _per_task_stats(logs: Sequence[TaskLog]) -> Dict[str, Tuple[int, int]]:
    """Map core_task_id -> (log count, summed focus level)."""
    if not logs:
        return {}

    df = pl.DataFrame(
        {
            "core_task_id": [entry.core_task_id for entry in logs],
            # A missing focus level counts as 0 but still counts as a log.
            "focus_level": [entry.focus_level or 0 for entry in logs],
        },
        schema={"core_task_id": pl.Utf8, "focus_level": pl.Int64},
    )
    grouped = df.group_by("core_task_id").agg(
        pl.len().alias("log_count"),
        pl.col("focus_level").sum().alias("focus_total"),
    )
    return {
        row["core_task_id"]: (int(row["log_count"]), int(row["focus_total"]))
        for row in grouped.iter_rows(named=True)
    }


def _round_half_up(value: Decimal, places: str = "0.1") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def time_distribution(core_tasks: Sequence[CoreTask], logs: Sequence[TaskLog]) -> List[TimeSlice]:
    """
    Estimated minutes per core task, in core task order.

    Tasks without any logs are dropped, so an empty result means "no data"
    and the caller should show a placeholder instead of an empty chart.
    """
    stats = _per_task_stats(logs)
    slices: List[TimeSlice] = []
    for index, task in enumerate(core_tasks):
        count, _ = stats.get(task.id, (0, 0))
        minutes = count * MINUTES_PER_LOG
        if minutes <= 0:
            continue
        slices.append(TimeSlice(
            task_name=task.name,
            estimated_minutes=minutes,
            color=task.color or TASK_COLORS[index % len(TASK_COLORS)],
        ))
    return slices


def average_focus(core_tasks: Sequence[CoreTask], logs: Sequence[TaskLog]) -> List[FocusAverage]:
    """
    Mean focus level per core task rounded half-up to one decimal.

    Every core task is kept; a task with no logs averages 0.0.
    """
    stats = _per_task_stats(logs)
    averages: List[FocusAverage] = []
    for task in core_tasks:
        count, total = stats.get(task.id, (0, 0))
        value = _round_half_up(Decimal(total) / Decimal(count)) if count else 0.0
        averages.append(FocusAverage(task_name=task.name, average_focus=value))
    return averages


def _iso_instant(entry: TaskLog) -> str:
    ts = entry.timestamp.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"


def serialize_for_prompt(logs: Sequence[TaskLog]) -> str:
    """
    Compact JSON array of the logs for the weekly summary prompt.

    Key order is fixed (taskId, focus, energyText, category, timestamp) and
    absent values are left out, so the same input always yields the same string.
    """
    rows = []
    for entry in logs:
        row = {
            "taskId": entry.core_task_id,
            "focus": entry.focus_level,
            "energyText": entry.energy_input,
            "category": entry.energy_category,
            "timestamp": _iso_instant(entry),
        }
        rows.append({key: value for key, value in row.items() if value is not None})
    return json.dumps(rows, separators=(",", ":"), ensure_ascii=False)


def build_analytics(core_tasks: Sequence[CoreTask], logs: Sequence[TaskLog]) -> AnalyticsSnapshot:
    if not core_tasks or not logs:
        log.debug("No core tasks or logs in window; returning empty analytics snapshot.")
        return AnalyticsSnapshot()
    return AnalyticsSnapshot(
        time_distribution=time_distribution(core_tasks, logs),
        average_focus=average_focus(core_tasks, logs),
        has_data=True,
        message="",
    )
