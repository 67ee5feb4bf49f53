from fastapi import APIRouter

from FocusFlow.api.deps import TrackerDep
from FocusFlow.models import UserPreferences

router = APIRouter()


@router.get("", response_model=UserPreferences)
def read_preferences(tracker: TrackerDep):
    return tracker.get_preferences()


@router.put("", response_model=UserPreferences)
def replace_preferences(prefs_in: UserPreferences, tracker: TrackerDep):
    return tracker.update_preferences(prefs_in)
