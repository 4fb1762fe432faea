import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.calendar_view.engine import CalendarSettings
from clinic_backend.core import config
from clinic_backend.data.providers import FixtureError, get_fixture_provider
from clinic_backend.database import ensure_calendar_schema
from clinic_backend.routes import calendar_routes

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_data_source() -> None:
    config.validate_runtime_config()

    if config.DATA_SOURCE == 'database':
        try:
            ensure_calendar_schema()
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')
        return

    try:
        get_fixture_provider(CalendarSettings().reserved_patient_id)
    except FixtureError:
        logger.exception('Calendar fixture could not be loaded. Check FIXTURE_PATH.')
        raise


@app.get('/')
def root():
    return {'status': 'Clinic Calendar API Running'}


app.include_router(calendar_routes.router, prefix='/calendar')
