"""
Session context: who is signed in and their cached profile.

Populated by `sign_in()`, cleared by `sign_out()`. Passed explicitly to the
services that need it instead of living in module-level state.
"""

import logging
from typing import Any, List, Optional

from FocusFlow.config import DEFAULT_REMINDER_TIMES
from FocusFlow.database.store import RecordStore
from FocusFlow.models import AuthUser, UserProfile

log = logging.getLogger(__name__)


class NotSignedInError(RuntimeError):
    pass


class Session:
    def __init__(self, store: RecordStore, default_reminder_times: Optional[List[str]] = None):
        self.store = store
        self.default_reminder_times = list(default_reminder_times or DEFAULT_REMINDER_TIMES)
        self.user: Optional[AuthUser] = None
        self.profile: Optional[UserProfile] = None

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def sign_in(self, user: AuthUser) -> Optional[UserProfile]:
        """Load the user's profile, creating it on first sign-in."""
        self.user = user
        profile = self.store.get_user_profile(user.uid)
        if profile is None and self.store.available:
            log.info(f"First sign-in for user {user.uid}; creating profile.")
            profile = self.store.create_user_profile(UserProfile(
                uid=user.uid,
                email=user.email,
                display_name=user.display_name,
                photo_url=user.photo_url,
                core_tasks_set=False,
                reminder_times=list(self.default_reminder_times),
            ))
        self.profile = profile
        return profile

    def sign_out(self) -> None:
        if self.user is not None:
            log.debug(f"Signing out user {self.user.uid}")
        self.user = None
        self.profile = None

    def require_user(self) -> AuthUser:
        if self.user is None:
            raise NotSignedInError("No user is signed in.")
        return self.user

    def update_profile(self, **fields: Any) -> Optional[UserProfile]:
        """Write profile fields through to the store and merge them into the cached profile."""
        user = self.require_user()
        self.store.update_user_profile(user.uid, **fields)
        if self.profile is not None:
            self.profile = self.profile.model_copy(update=fields)
        return self.profile

    def refresh_profile(self) -> Optional[UserProfile]:
        user = self.require_user()
        self.profile = self.store.get_user_profile(user.uid)
        return self.profile
