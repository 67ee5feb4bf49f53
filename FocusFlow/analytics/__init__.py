from FocusFlow.analytics.aggregator import (
    MINUTES_PER_LOG,
    TASK_COLORS,
    AnalyticsSnapshot,
    FocusAverage,
    TimeSlice,
    average_focus,
    build_analytics,
    serialize_for_prompt,
    time_distribution,
)

__all__ = [
    "MINUTES_PER_LOG",
    "TASK_COLORS",
    "AnalyticsSnapshot",
    "FocusAverage",
    "TimeSlice",
    "average_focus",
    "build_analytics",
    "serialize_for_prompt",
    "time_distribution",
]
