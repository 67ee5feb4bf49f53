from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, status

from FocusFlow.api.deps import TrackerDep
from FocusFlow.models import FocusFlowModel, TaskLog, TaskLogCreate

router = APIRouter()


class TaskLogCreated(FocusFlowModel):
    id: Optional[str] = None


@router.post("", response_model=TaskLogCreated, status_code=status.HTTP_201_CREATED)
def create_task_log(log_in: TaskLogCreate, tracker: TrackerDep):
    return TaskLogCreated(id=tracker.log_task(log_in))


@router.get("", response_model=list[TaskLog])
def read_task_logs(
    tracker: TrackerDep,
    start: datetime = Query(..., description="Start instant, inclusive (ISO-8601)"),
    end: datetime = Query(..., description="End instant, inclusive (ISO-8601)"),
):
    return tracker.task_logs_between(start, end)
