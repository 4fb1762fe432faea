"""Calendar bucketing and layout.

Turns a reference date, a view mode and the provider's appointment list into
the buckets a calendar page renders. Everything here is synchronous and works
on already-validated records; nothing mutates the provider's data.
"""

import logging
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Protocol, Sequence

from clinic_backend.calendar_view.schemas import (
    AgendaResponse,
    Appointment,
    AppointmentBlockResponse,
    AppointmentStatus,
    CalendarBucketResponse,
    CalendarViewResponse,
    MonthGridResponse,
    Patient,
    TimeSlotResponse,
    ViewMode,
    parse_clock_time,
)
from clinic_backend.core import config

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
STATUS_STYLES = {
    'scheduled': 'info',
    'in-progress': 'warning',
    'completed': 'success',
    'canceled': 'destructive',
    'no-show': 'muted',
}
TYPE_LABELS = {
    'consultation': 'Consultation',
    'follow-up': 'Follow-up',
    'procedure': 'Procedure',
    'check-up': 'Check-up',
}
UNKNOWN_STYLE = 'unknown'
RESERVED_LABEL = 'Reserved'


class DataProvider(Protocol):
    def list_patients(self) -> Sequence[Patient]:
        ...

    def list_appointments(self) -> Sequence[Appointment]:
        ...


@dataclass(frozen=True)
class CalendarSettings:
    window_start_hour: int = config.CALENDAR_WINDOW_START_HOUR
    window_end_hour: int = config.CALENDAR_WINDOW_END_HOUR
    slot_height_px: int = config.CALENDAR_SLOT_HEIGHT_PX
    min_block_height_px: int = config.CALENDAR_MIN_BLOCK_HEIGHT_PX
    week_start_day: int = config.CALENDAR_WEEK_START_DAY  # 0 = Monday
    weekend_days: frozenset[int] = config.CALENDAR_WEEKEND_DAYS
    reserved_patient_id: str = config.RESERVED_PATIENT_ID
    month_max_visible: int = config.CALENDAR_MONTH_MAX_VISIBLE
    suppress_weekends: bool = config.CALENDAR_SUPPRESS_WEEKENDS

    def __post_init__(self) -> None:
        if not 0 <= self.window_start_hour < self.window_end_hour <= 24:
            raise ValueError('The workday window must start before it ends.')
        if self.slot_height_px <= 0:
            raise ValueError('Slot height must be positive.')
        if self.min_block_height_px < 0:
            raise ValueError('Minimum block height cannot be negative.')
        if not 0 <= self.week_start_day <= 6:
            raise ValueError('Week start day must be between 0 (Monday) and 6 (Sunday).')
        if self.month_max_visible < 0:
            raise ValueError('Month view cannot show a negative number of appointments.')


def status_style(status) -> str:
    return STATUS_STYLES.get(getattr(status, 'value', status), UNKNOWN_STYLE)


def type_label(appointment_type) -> str:
    value = getattr(appointment_type, 'value', appointment_type)
    return TYPE_LABELS.get(value, str(value).replace('-', ' ').title())


def format_hour_label(hour: int) -> str:
    suffix = 'AM' if hour < 12 else 'PM'
    return f'{hour % 12 or 12} {suffix}'


def time_slots(settings: CalendarSettings) -> list[TimeSlotResponse]:
    return [
        TimeSlotResponse(index=index, time=time(hour, 0), label=format_hour_label(hour))
        for index, hour in enumerate(range(settings.window_start_hour, settings.window_end_hour))
    ]


def layout_offset(start: time | str, duration_minutes: int, settings: CalendarSettings) -> tuple[float, float]:
    """Return the (top, height) pixel box of a block in the day/week grid.

    Times before the window give a negative top; callers decide what to do
    with those, nothing is clamped here.
    """
    if isinstance(start, str):
        start = parse_clock_time(start)

    slot = settings.slot_height_px
    top = (start.hour - settings.window_start_hour) * slot + (start.minute / 60) * slot
    height = max((duration_minutes / 60) * slot, settings.min_block_height_px)
    return top, height


def is_reserved(appointment: Appointment, settings: CalendarSettings) -> bool:
    return appointment.patient_id == settings.reserved_patient_id


def is_weekend(day: date, settings: CalendarSettings) -> bool:
    return day.weekday() in settings.weekend_days


def appointments_for_day(appointments: Iterable[Appointment], day: date) -> list[Appointment]:
    return [appointment for appointment in appointments if appointment.date == day]


def group_by_day(appointments: Iterable[Appointment]) -> dict[date, list[Appointment]]:
    grouped: dict[date, list[Appointment]] = {}
    for appointment in appointments:
        grouped.setdefault(appointment.date, []).append(appointment)
    return grouped


def start_of_week(day: date, week_start_day: int) -> date:
    return day - timedelta(days=(day.weekday() - week_start_day) % 7)


def week_dates(day: date, week_start_day: int) -> list[date]:
    week_start = start_of_week(day, week_start_day)
    return [week_start + timedelta(days=offset) for offset in range(7)]


def month_grid_dates(year: int, month: int, week_start_day: int) -> list[date]:
    month_start = date(year, month, 1)
    month_end = month_start.replace(day=monthrange(year, month)[1])

    # Full weeks covering the whole month.
    grid_start = start_of_week(month_start, week_start_day)
    grid_end = start_of_week(month_end, week_start_day) + timedelta(days=6)

    return [grid_start + timedelta(days=offset) for offset in range((grid_end - grid_start).days + 1)]


def build_block(appointment: Appointment, settings: CalendarSettings) -> AppointmentBlockResponse:
    top, height = layout_offset(appointment.time, appointment.duration, settings)
    start = datetime.combine(appointment.date, appointment.time)
    end = start + timedelta(minutes=appointment.duration)
    window_start = datetime.combine(appointment.date, time(settings.window_start_hour))
    window_end = datetime.combine(appointment.date, time.min) + timedelta(hours=settings.window_end_hour)
    outside_window = start < window_start or end > window_end
    if outside_window:
        logger.debug('Appointment %s at %s falls outside the calendar window.', appointment.id, appointment.time)

    status = appointment.status.value
    appointment_type = appointment.type.value
    block = {
        'appointment_id': appointment.id,
        'is_reserved': False,
        'label': type_label(appointment_type),
        'time': appointment.time,
        'end_time': end.time(),
        'duration_minutes': appointment.duration,
        'status': status,
        'status_style': status_style(status),
        'type': appointment_type,
        'type_label': type_label(appointment_type),
        'provider': appointment.provider,
        'notes': appointment.notes,
        'top_px': top,
        'height_px': height,
        'slot_index': int(top // settings.slot_height_px),
        'outside_window': outside_window,
    }

    if is_reserved(appointment, settings):
        block.update(is_reserved=True, label=appointment.notes or RESERVED_LABEL)
    elif appointment.patient is not None:
        block.update(
            patient_id=appointment.patient_id,
            patient_name=appointment.patient.full_name,
            patient_initials=appointment.patient.initials,
            patient_short_name=appointment.patient.short_name,
            link=f'/patients/{appointment.patient_id}',
        )
    else:
        block.update(patient_id=appointment.patient_id, link=f'/patients/{appointment.patient_id}')

    return AppointmentBlockResponse(**block)


def view_title(view_mode: ViewMode, reference_date: date, settings: CalendarSettings) -> str:
    if view_mode == ViewMode.DAY:
        return f'{reference_date:%A, %B} {reference_date.day}, {reference_date.year}'
    if view_mode == ViewMode.WEEK:
        first = start_of_week(reference_date, settings.week_start_day)
        last = first + timedelta(days=6)
        return f'{first:%b} {first.day} - {last:%b} {last.day}, {last.year}'
    if view_mode == ViewMode.MONTH:
        return f'{reference_date:%B %Y}'
    return str(reference_date.year)


class CalendarEngine:
    """Builds calendar views from an injected data provider."""

    def __init__(self, provider: DataProvider, settings: CalendarSettings | None = None):
        self.provider = provider
        self.settings = settings or CalendarSettings()

    def appointments_for_day(self, day: date) -> list[Appointment]:
        return appointments_for_day(self.provider.list_appointments(), day)

    def layout_offset(self, start: time | str, duration_minutes: int) -> tuple[float, float]:
        return layout_offset(start, duration_minutes, self.settings)

    def build_view(
        self,
        reference_date: date,
        view_mode: ViewMode,
        today: date | None = None,
        anchor_day: int | None = None,
    ) -> CalendarViewResponse:
        today = today or date.today()
        grouped = group_by_day(self.provider.list_appointments())

        view = {
            'view_mode': view_mode,
            'reference_date': reference_date,
            'anchor_day': anchor_day or reference_date.day,
            'title': view_title(view_mode, reference_date, self.settings),
        }

        if view_mode == ViewMode.DAY:
            return CalendarViewResponse(
                **view,
                range_start=reference_date,
                range_end=reference_date,
                time_slots=time_slots(self.settings),
                buckets=[self._schedule_bucket(reference_date, grouped, today)],
            )

        if view_mode == ViewMode.WEEK:
            days = week_dates(reference_date, self.settings.week_start_day)
            return CalendarViewResponse(
                **view,
                range_start=days[0],
                range_end=days[-1],
                time_slots=time_slots(self.settings),
                buckets=[self._schedule_bucket(day, grouped, today) for day in days],
            )

        if view_mode == ViewMode.MONTH:
            days = month_grid_dates(reference_date.year, reference_date.month, self.settings.week_start_day)
            return CalendarViewResponse(
                **view,
                range_start=days[0],
                range_end=days[-1],
                buckets=[self._month_bucket(day, reference_date.month, grouped, today) for day in days],
            )

        months = [self._year_month_grid(reference_date.year, month, grouped, today) for month in range(1, 13)]
        return CalendarViewResponse(
            **view,
            range_start=date(reference_date.year, 1, 1),
            range_end=date(reference_date.year, 12, 31),
            months=months,
        )

    def agenda(self, day: date) -> AgendaResponse:
        appointments = sorted(self.appointments_for_day(day), key=lambda appointment: appointment.time)
        real = [appointment for appointment in appointments if not is_reserved(appointment, self.settings)]
        return AgendaResponse(
            date=day,
            total_count=len(real),
            completed_count=sum(1 for appointment in real if appointment.status == AppointmentStatus.COMPLETED),
            blocks=[build_block(appointment, self.settings) for appointment in appointments],
        )

    def _base_bucket(self, day: date, today: date) -> dict:
        return {
            'date': day,
            'day_of_month': day.day,
            'weekday_label': WEEKDAY_LABELS[day.weekday()],
            'is_today': day == today,
        }

    def _schedule_bucket(self, day: date, grouped: dict[date, list[Appointment]], today: date) -> CalendarBucketResponse:
        appointments = grouped.get(day, [])
        real_count = sum(1 for appointment in appointments if not is_reserved(appointment, self.settings))

        if self.settings.suppress_weekends and is_weekend(day, self.settings):
            if appointments:
                logger.debug('Suppressing %d appointment(s) on non-office day %s.', len(appointments), day)
            return CalendarBucketResponse(
                **self._base_bucket(day, today),
                is_office_day=False,
                suppressed_count=len(appointments),
            )

        return CalendarBucketResponse(
            **self._base_bucket(day, today),
            blocks=[build_block(appointment, self.settings) for appointment in appointments],
            has_appointments=real_count > 0,
        )

    def _month_bucket(
        self,
        day: date,
        current_month: int,
        grouped: dict[date, list[Appointment]],
        today: date,
    ) -> CalendarBucketResponse:
        appointments = grouped.get(day, [])
        limit = self.settings.month_max_visible
        visible = appointments[:limit]
        hidden = appointments[limit:]

        return CalendarBucketResponse(
            **self._base_bucket(day, today),
            in_current_month=day.month == current_month,
            is_office_day=not is_weekend(day, self.settings),
            blocks=[build_block(appointment, self.settings) for appointment in visible],
            hidden_count=sum(1 for appointment in hidden if not is_reserved(appointment, self.settings)),
            has_appointments=any(not is_reserved(appointment, self.settings) for appointment in appointments),
        )

    def _year_month_grid(
        self,
        year: int,
        month: int,
        grouped: dict[date, list[Appointment]],
        today: date,
    ) -> MonthGridResponse:
        buckets = []
        for day in month_grid_dates(year, month, self.settings.week_start_day):
            appointments = grouped.get(day, []) if day.month == month else []
            buckets.append(
                CalendarBucketResponse(
                    **self._base_bucket(day, today),
                    in_current_month=day.month == month,
                    is_office_day=not is_weekend(day, self.settings),
                    has_appointments=any(not is_reserved(appointment, self.settings) for appointment in appointments),
                )
            )

        return MonthGridResponse(year=year, month=month, label=f'{date(year, month, 1):%B}', buckets=buckets)
