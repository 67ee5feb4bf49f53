from datetime import date

from fastapi import APIRouter, HTTPException, Query, Response, status

from FocusFlow.api.deps import TrackerDep
from FocusFlow.models import PlannedTask, PlannedTaskUpdate

router = APIRouter()


@router.get("", response_model=list[PlannedTask])
def read_planned_tasks(
    tracker: TrackerDep,
    start: date = Query(..., description="First day, inclusive (YYYY-MM-DD)"),
    end: date = Query(..., description="Last day, inclusive (YYYY-MM-DD)"),
):
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'end' must not be before 'start'.",
        )
    return tracker.planned_tasks_between(start, end)


@router.post("", response_model=PlannedTask, status_code=status.HTTP_201_CREATED)
def create_planned_task(task_in: PlannedTask, tracker: TrackerDep):
    task_id = tracker.plan_task(task_in)
    return task_in.model_copy(update={"id": task_id})


@router.patch("/{task_id}", response_model=PlannedTask)
def update_planned_task(task_id: str, task_in: PlannedTaskUpdate, tracker: TrackerDep):
    updated = tracker.update_planned_task(task_id, task_in)
    if updated is None:
        # Store unavailable: nothing was written.
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Record store unavailable")
    return updated


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_planned_task(task_id: str, tracker: TrackerDep):
    tracker.delete_planned_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
