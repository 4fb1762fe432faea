"""Record and response models for the calendar views."""

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ViewMode(str, Enum):
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'


class AppointmentStatus(str, Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    CANCELED = 'canceled'
    NO_SHOW = 'no-show'


class AppointmentType(str, Enum):
    CONSULTATION = 'consultation'
    FOLLOW_UP = 'follow-up'
    PROCEDURE = 'procedure'
    CHECK_UP = 'check-up'


def parse_clock_time(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` string."""
    normalized = value.strip()
    if len(normalized) != 5 or normalized[2] != ':':
        raise ValueError(f'Expected a time formatted as HH:MM, got {value!r}.')
    return datetime.strptime(normalized, '%H:%M').time()


def parse_iso_date(value) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f'Expected an ISO date string, got {value!r}.')

    normalized = value.strip()
    if len(normalized) != 10 or normalized[4] != '-' or normalized[7] != '-':
        raise ValueError(f'Expected a date formatted as YYYY-MM-DD, got {value!r}.')
    return datetime.strptime(normalized, '%Y-%m-%d').date()


class Patient(BaseModel):
    """Patient profile as consumed by the calendar."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    email: str = ''
    phone: str = ''
    address: str = ''
    avatar: str | None = None
    conditions: tuple[str, ...] = ()
    allergies: tuple[str, ...] = ()
    last_visit: date | None = None
    next_appointment: date | None = None
    created_at: date

    @field_validator('date_of_birth', 'created_at', mode='before')
    @classmethod
    def validate_required_dates(cls, value):
        return parse_iso_date(value)

    @field_validator('last_visit', 'next_appointment', mode='before')
    @classmethod
    def validate_optional_dates(cls, value):
        if value is None or value == '':
            return None
        return parse_iso_date(value)

    @field_validator('email', 'phone', 'address', mode='before')
    @classmethod
    def validate_contact_fields(cls, value):
        if value is None:
            return ''
        return value

    @field_validator('gender')
    @classmethod
    def validate_gender(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {'male', 'female', 'other'}:
            raise ValueError('Gender must be male, female or other.')
        return normalized

    @field_validator('conditions', 'allergies', mode='before')
    @classmethod
    def validate_string_lists(cls, value):
        if value is None:
            return ()
        return value

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'

    @property
    def initials(self) -> str:
        return f'{self.first_name[:1]}{self.last_name[:1]}'.upper()

    @property
    def short_name(self) -> str:
        return f'{self.first_name} {self.last_name[:1]}.'


class Appointment(BaseModel):
    """An appointment, or a reserved block when patient_id is the sentinel."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    patient_id: str
    date: date
    time: time
    duration: int = Field(gt=0)
    type: AppointmentType
    status: AppointmentStatus
    provider: str = ''
    notes: str | None = None
    patient: Patient | None = None

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, value):
        return parse_iso_date(value)

    @field_validator('time', mode='before')
    @classmethod
    def validate_time(cls, value):
        if isinstance(value, str):
            return parse_clock_time(value)
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        return normalized


class TimeSlotResponse(BaseModel):
    index: int
    time: time
    label: str


class AppointmentBlockResponse(BaseModel):
    appointment_id: str
    patient_id: str | None = None
    patient_name: str | None = None
    patient_initials: str | None = None
    patient_short_name: str | None = None
    link: str | None = None
    is_reserved: bool
    label: str
    time: time
    end_time: time
    duration_minutes: int
    status: str
    status_style: str
    type: str
    type_label: str
    provider: str
    notes: str | None = None
    top_px: float
    height_px: float
    slot_index: int
    outside_window: bool


class CalendarBucketResponse(BaseModel):
    date: date
    day_of_month: int
    weekday_label: str
    is_today: bool
    in_current_month: bool = True
    is_office_day: bool = True
    blocks: list[AppointmentBlockResponse] = []
    hidden_count: int = 0
    suppressed_count: int = 0
    has_appointments: bool = False


class MonthGridResponse(BaseModel):
    year: int
    month: int
    label: str
    buckets: list[CalendarBucketResponse]


class CalendarViewResponse(BaseModel):
    view_mode: ViewMode
    reference_date: date
    anchor_day: int
    title: str
    range_start: date
    range_end: date
    time_slots: list[TimeSlotResponse] = []
    buckets: list[CalendarBucketResponse] = []
    months: list[MonthGridResponse] = []


class AgendaResponse(BaseModel):
    date: date
    total_count: int
    completed_count: int
    blocks: list[AppointmentBlockResponse]


class LegendOptionResponse(BaseModel):
    value: str
    label: str
    style: str | None = None


class LegendResponse(BaseModel):
    statuses: list[LegendOptionResponse]
    types: list[LegendOptionResponse]
