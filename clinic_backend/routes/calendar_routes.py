from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.calendar_view.engine import (
    STATUS_STYLES,
    TYPE_LABELS,
    CalendarEngine,
    CalendarSettings,
    DataProvider,
    build_block,
)
from clinic_backend.calendar_view.navigation import shift_reference_date
from clinic_backend.calendar_view.schemas import (
    AgendaResponse,
    AppointmentBlockResponse,
    AppointmentStatus,
    AppointmentType,
    CalendarViewResponse,
    LegendOptionResponse,
    LegendResponse,
    ViewMode,
)
from clinic_backend.core import config
from clinic_backend.data.providers import FixtureError, SqlAlchemyProvider, get_fixture_provider
from clinic_backend.database import SessionLocal, ensure_calendar_schema

router = APIRouter(tags=['calendar'])

DATA_UNAVAILABLE_DETAIL = 'Calendar data unavailable. Verify DATA_SOURCE and the configured data source.'


def get_calendar_settings() -> CalendarSettings:
    return CalendarSettings()


def get_provider(settings: CalendarSettings = Depends(get_calendar_settings)):
    if config.DATA_SOURCE == 'database':
        try:
            ensure_calendar_schema()
        except SQLAlchemyError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=DATA_UNAVAILABLE_DETAIL,
            ) from exc

        db = SessionLocal()
        try:
            yield SqlAlchemyProvider(db, settings.reserved_patient_id)
        finally:
            db.close()
        return

    try:
        provider = get_fixture_provider(settings.reserved_patient_id)
    except FixtureError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATA_UNAVAILABLE_DETAIL,
        ) from exc

    yield provider


def build_calendar_view(
    provider: DataProvider,
    settings: CalendarSettings,
    reference_date: date,
    view_mode: ViewMode,
    anchor_day: int | None = None,
) -> CalendarViewResponse:
    engine = CalendarEngine(provider, settings)
    try:
        return engine.build_view(reference_date, view_mode, today=date.today(), anchor_day=anchor_day)
    except (SQLAlchemyError, FixtureError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATA_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('', response_model=CalendarViewResponse)
def get_calendar_view(
    view: ViewMode = Query(default=ViewMode.WEEK),
    reference_date: date | None = Query(default=None, alias='date'),
    anchor_day: int | None = Query(default=None, ge=1, le=31),
    provider: DataProvider = Depends(get_provider),
    settings: CalendarSettings = Depends(get_calendar_settings),
):
    return build_calendar_view(provider, settings, reference_date or date.today(), view, anchor_day)


@router.get('/navigate', response_model=CalendarViewResponse)
def navigate_calendar(
    direction: int = Query(...),
    view: ViewMode = Query(default=ViewMode.WEEK),
    reference_date: date | None = Query(default=None, alias='date'),
    anchor_day: int | None = Query(default=None, ge=1, le=31),
    provider: DataProvider = Depends(get_provider),
    settings: CalendarSettings = Depends(get_calendar_settings),
):
    current = reference_date or date.today()
    anchor_day = anchor_day or current.day

    try:
        target = shift_reference_date(current, view, direction, anchor_day=anchor_day)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    if view in (ViewMode.DAY, ViewMode.WEEK):
        anchor_day = target.day

    return build_calendar_view(provider, settings, target, view, anchor_day)


@router.get('/today', response_model=CalendarViewResponse)
def get_today_view(
    view: ViewMode = Query(default=ViewMode.WEEK),
    provider: DataProvider = Depends(get_provider),
    settings: CalendarSettings = Depends(get_calendar_settings),
):
    return build_calendar_view(provider, settings, date.today(), view)


@router.get('/days/{day}/appointments', response_model=list[AppointmentBlockResponse])
def list_day_appointments(
    day: date,
    provider: DataProvider = Depends(get_provider),
    settings: CalendarSettings = Depends(get_calendar_settings),
):
    engine = CalendarEngine(provider, settings)
    try:
        return [build_block(appointment, settings) for appointment in engine.appointments_for_day(day)]
    except (SQLAlchemyError, FixtureError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATA_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/agenda', response_model=AgendaResponse)
def get_agenda(
    reference_date: date | None = Query(default=None, alias='date'),
    provider: DataProvider = Depends(get_provider),
    settings: CalendarSettings = Depends(get_calendar_settings),
):
    engine = CalendarEngine(provider, settings)
    try:
        return engine.agenda(reference_date or date.today())
    except (SQLAlchemyError, FixtureError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATA_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/legend', response_model=LegendResponse)
def get_legend():
    return LegendResponse(
        statuses=[
            LegendOptionResponse(
                value=appointment_status.value,
                label=appointment_status.value.replace('-', ' ').title(),
                style=STATUS_STYLES[appointment_status.value],
            )
            for appointment_status in AppointmentStatus
        ],
        types=[
            LegendOptionResponse(value=appointment_type.value, label=TYPE_LABELS[appointment_type.value])
            for appointment_type in AppointmentType
        ],
    )
