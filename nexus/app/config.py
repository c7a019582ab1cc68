# nexus/app/config.py

from datetime import date
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    TG_BOT_TOKEN: str

    # ===== Redis =====
    REDIS_URL: str = "redis://127.0.0.1:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 2.0

    # ===== Slots API =====
    SLOTS_API_URL: str = "https://ttp.cbp.dhs.gov/schedulerapi/slots"
    SCHEDULE_URL: str = (
        "https://ttp.cbp.dhs.gov/schedulerui/schedule-interview/location"
        "?lang=en&vo=true&returnUrl=ttp-external&service=nh"
    )
    SLOT_LIMIT: int = 5
    HTTP_TIMEOUT: float = 10.0

    # ===== Scheduling =====
    POLL_INTERVAL: float = 15.0
    LOCK_RETRY_INTERVAL: float = 1.0

    # ===== Notification filter (inclusive, either side optional) =====
    WINDOW_START: Optional[date] = None
    WINDOW_END: Optional[date] = None

    # ===== Tracking =====
    STRICT_MANIFEST: bool = False
    CENTERS_FILE: Path = Path(__file__).resolve().parent / "centers.json"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )


def get_settings() -> Settings:
    return Settings()
