from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_backend.core import config


engine = create_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_calendar_schema_checked = False


def ensure_calendar_schema() -> None:
    global _calendar_schema_checked

    if _calendar_schema_checked:
        return

    with _schema_lock:
        if _calendar_schema_checked:
            return

        # Registers the tables on Base.metadata.
        from clinic_backend.models import appointment, patient  # noqa: F401

        Base.metadata.create_all(bind=engine)

        _calendar_schema_checked = True
