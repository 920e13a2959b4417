import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinicbook.db")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
APP_URL = os.getenv("APP_URL", "http://localhost:3000")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Scheduling rules
MODIFY_WINDOW_HOURS = int(os.getenv("MODIFY_WINDOW_HOURS", "8"))
RESCHEDULE_RANGE_DAYS = int(os.getenv("RESCHEDULE_RANGE_DAYS", "14"))
BOOKING_RANGE_DAYS = int(os.getenv("BOOKING_RANGE_DAYS", "60"))
DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "30"))
# When on, the last slot of a window must end by the window's end time.
SLOT_REQUIRE_FULL_FIT = _get_bool(os.getenv("SLOT_REQUIRE_FULL_FIT"), default=False)

NOTIFICATIONS_ENABLED = _get_bool(os.getenv("NOTIFICATIONS_ENABLED"), default=True)

# Reminder job. Left empty, the reminder endpoint accepts any caller.
CRON_SECRET = os.getenv("CRON_SECRET", "")

# Public booking throttle, in limits notation ("10/hour").
RATELIMIT_ENABLED = _get_bool(os.getenv("RATELIMIT_ENABLED"), default=True)
RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
BOOKING_RATE_LIMIT = os.getenv("BOOKING_RATE_LIMIT", "10/hour")

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if MODIFY_WINDOW_HOURS <= 0:
        raise RuntimeError("MODIFY_WINDOW_HOURS must be positive.")
    if DEFAULT_SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("DEFAULT_SLOT_DURATION_MINUTES must be positive.")
    if APP_ENV.lower() == "production" and not CRON_SECRET:
        raise RuntimeError("CRON_SECRET must be set in production.")
