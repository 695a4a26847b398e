import os
import logging
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

load_dotenv()


def _parse_shift_start(raw: str) -> time:
    hour, minute = raw.strip().split(":")
    return time(int(hour), int(minute))


class AttendanceSchedule(BaseModel):
    """
    Operating schedule used to derive attendance status.

    All day-keyed attendance logic maps timestamps into `timezone`,
    so every component must share one instance of this schedule.
    """
    timezone: str = "Asia/Phnom_Penh"
    shift_start: time = time(8, 0)
    late_grace_minutes: int = 15
    half_day_hours: float = 4.0

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _schedule_from_env() -> AttendanceSchedule:
    return AttendanceSchedule(
        timezone=os.getenv("ATTENDANCE_TIMEZONE", "Asia/Phnom_Penh"),
        shift_start=_parse_shift_start(os.getenv("SHIFT_START", "08:00")),
        late_grace_minutes=int(os.getenv("LATE_GRACE_MINUTES", "15")),
        half_day_hours=float(os.getenv("HALF_DAY_HOURS", "4")),
    )


class Config(BaseModel):
    app_name: str = "HR Rules Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hr_engine.db")

    # Attendance
    attendance: AttendanceSchedule = Field(default_factory=_schedule_from_env)

    # Payroll listing
    payroll_page_size: int = int(os.getenv("PAYROLL_PAGE_SIZE", "50"))

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "development" and settings.database_url.startswith("sqlite"):
    _logger.info("Using SQLite database at %s", settings.database_url)
