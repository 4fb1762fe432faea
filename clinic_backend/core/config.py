import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_set(value: str | None, default: frozenset[int]) -> frozenset[int]:
    if value is None or not value.strip():
        return default
    return frozenset(int(part) for part in value.split(",") if part.strip())


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

APP_ENV = os.getenv("APP_ENV", "development")

DATA_SOURCE = os.getenv("DATA_SOURCE", "fixture").strip().lower()
FIXTURE_PATH = os.getenv("FIXTURE_PATH", "")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:8080").split(",")
    if origin.strip()
]

CALENDAR_WINDOW_START_HOUR = int(os.getenv("CALENDAR_WINDOW_START_HOUR", "8"))
CALENDAR_WINDOW_END_HOUR = int(os.getenv("CALENDAR_WINDOW_END_HOUR", "16"))
CALENDAR_SLOT_HEIGHT_PX = int(os.getenv("CALENDAR_SLOT_HEIGHT_PX", "80"))
CALENDAR_MIN_BLOCK_HEIGHT_PX = int(os.getenv("CALENDAR_MIN_BLOCK_HEIGHT_PX", "28"))
CALENDAR_WEEK_START_DAY = WEEKDAY_NAMES.index(os.getenv("CALENDAR_WEEK_START_DAY", "monday").strip().lower())
CALENDAR_WEEKEND_DAYS = _get_int_set(os.getenv("CALENDAR_WEEKEND_DAYS"), default=frozenset({5, 6}))
CALENDAR_MONTH_MAX_VISIBLE = int(os.getenv("CALENDAR_MONTH_MAX_VISIBLE", "3"))
CALENDAR_SUPPRESS_WEEKENDS = _get_bool(os.getenv("CALENDAR_SUPPRESS_WEEKENDS"), default=True)

RESERVED_PATIENT_ID = os.getenv("RESERVED_PATIENT_ID", "reserved")


def validate_runtime_config() -> None:
    if DATA_SOURCE not in {"fixture", "database"}:
        raise RuntimeError("DATA_SOURCE must be either 'fixture' or 'database'.")
    if not 0 <= CALENDAR_WINDOW_START_HOUR < CALENDAR_WINDOW_END_HOUR <= 24:
        raise RuntimeError("CALENDAR_WINDOW_START_HOUR must be before CALENDAR_WINDOW_END_HOUR.")
    if any(day not in range(7) for day in CALENDAR_WEEKEND_DAYS):
        raise RuntimeError("CALENDAR_WEEKEND_DAYS must contain weekday numbers between 0 and 6.")
    if APP_ENV.lower() == "production" and DATA_SOURCE == "fixture":
        raise RuntimeError("The mock fixture data source cannot be used in production.")
