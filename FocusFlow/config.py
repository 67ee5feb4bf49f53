from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REMINDER_TIMES = ["09:00", "12:00", "15:00", "18:00", "21:00"]

# Values shipped in example .env files; treated as "no key configured"
PLACEHOLDER_API_KEYS = {"YOUR_GOOGLE_AI_KEY_HERE", "YOUR_API_KEY_HERE"}


class Settings(BaseSettings):
    # --- Record Store ---
    database_path: Optional[Path] = Path("FocusFlow/storage/focusflow.db") # Empty value disables the store

    # --- AI (Gemini) ---
    google_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FOCUSFLOW_GOOGLE_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY"),
    )
    model_name: str = "gemini-2.0-flash"
    llm_temperature: float = 0.3

    # --- User defaults ---
    default_reminder_times: List[str] = list(DEFAULT_REMINDER_TIMES)

    # --- API server ---
    api_v1_str: str = "/api/v1"
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="FOCUSFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra='ignore',
        populate_by_name=True,
    )

    @field_validator("database_path", mode="before")
    @classmethod
    def empty_path_disables_store(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    @property
    def ai_configured(self) -> bool:
        key = (self.google_api_key or "").strip()
        return bool(key) and key not in PLACEHOLDER_API_KEYS
