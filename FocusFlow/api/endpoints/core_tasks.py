from fastapi import APIRouter

from FocusFlow.api.deps import TrackerDep
from FocusFlow.models import CoreTask, CoreTaskSet

router = APIRouter()


@router.get("", response_model=list[CoreTask])
def read_core_tasks(tracker: TrackerDep):
    return tracker.get_core_tasks()


@router.put("", response_model=CoreTaskSet)
def replace_core_tasks(core_tasks: CoreTaskSet, tracker: TrackerDep):
    # Body validation already enforced exactly three tasks.
    return tracker.set_core_tasks(core_tasks)
