from datetime import date, time

import pytest

from clinic_backend.calendar_view.engine import (
    CalendarEngine,
    CalendarSettings,
    appointments_for_day,
    format_hour_label,
    layout_offset,
    month_grid_dates,
    status_style,
    type_label,
    view_title,
)
from clinic_backend.calendar_view.schemas import ViewMode
from clinic_backend.data.providers import FixtureProvider

SETTINGS = CalendarSettings(
    window_start_hour=8,
    window_end_hour=16,
    slot_height_px=80,
    min_block_height_px=28,
    week_start_day=0,
    weekend_days=frozenset({5, 6}),
    reserved_patient_id='reserved',
    month_max_visible=3,
    suppress_weekends=True,
)

PATIENTS = [
    {
        'id': 'p-1',
        'first_name': 'Sarah',
        'last_name': 'Johnson',
        'date_of_birth': '1985-03-14',
        'gender': 'female',
        'created_at': '2022-01-15',
    },
    {
        'id': 'p-2',
        'first_name': 'Michael',
        'last_name': 'Chen',
        'date_of_birth': '1978-11-02',
        'gender': 'male',
        'created_at': '2021-08-20',
    },
]


def _appointment(appointment_id: str, day: str, start: str, **overrides) -> dict:
    record = {
        'id': appointment_id,
        'patient_id': 'p-1',
        'date': day,
        'time': start,
        'duration': 30,
        'type': 'consultation',
        'status': 'scheduled',
        'provider': 'Dr. Emily Foster',
    }
    record.update(overrides)
    return record


def _engine(*appointments: dict, settings: CalendarSettings = SETTINGS) -> CalendarEngine:
    provider = FixtureProvider.from_data({'patients': PATIENTS, 'appointments': list(appointments)})
    return CalendarEngine(provider, settings)


def test_layout_offset_places_window_start_at_top() -> None:
    assert layout_offset('08:00', 60, SETTINGS) == (0, 80)


def test_layout_offset_uses_proportional_height_above_floor() -> None:
    top, height = layout_offset('09:00', 30, SETTINGS)

    assert top == SETTINGS.slot_height_px
    assert height == max(SETTINGS.slot_height_px / 2, SETTINGS.min_block_height_px)


def test_layout_offset_applies_minimum_block_height() -> None:
    top, height = layout_offset(time(10, 15), 10, SETTINGS)

    assert top == 180
    assert height == 28


def test_layout_offset_does_not_clamp_times_before_window() -> None:
    top, _ = layout_offset('07:30', 30, SETTINGS)

    assert top == -40


@pytest.mark.parametrize('value', ['9:00am', '0900', '25:00', ''])
def test_layout_offset_rejects_malformed_time_strings(value: str) -> None:
    with pytest.raises(ValueError):
        layout_offset(value, 30, SETTINGS)


def test_appointments_for_day_returns_matches_in_original_order() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-10', '14:00'),
        _appointment('a-2', '2024-06-11', '09:00'),
        _appointment('a-3', '2024-06-10', '08:00'),
    )

    matches = engine.appointments_for_day(date(2024, 6, 10))

    assert [appointment.id for appointment in matches] == ['a-1', 'a-3']


def test_appointments_for_day_returns_empty_list_without_matches() -> None:
    assert appointments_for_day([], date(2024, 6, 10)) == []
    assert _engine(_appointment('a-1', '2024-06-10', '08:00')).appointments_for_day(date(2024, 6, 9)) == []


def test_day_view_positions_single_short_appointment() -> None:
    engine = _engine(_appointment('a-1', '2024-06-10', '08:00', duration=30))

    view = engine.build_view(date(2024, 6, 10), ViewMode.DAY, today=date(2024, 6, 10))

    assert len(view.buckets) == 1
    [block] = view.buckets[0].blocks
    assert block.top_px == 0
    assert block.height_px == max(40, SETTINGS.min_block_height_px)
    assert block.patient_name == 'Sarah Johnson'
    assert block.patient_initials == 'SJ'
    assert block.link == '/patients/p-1'
    assert view.buckets[0].is_today is True
    assert [slot.label for slot in view.time_slots] == ['8 AM', '9 AM', '10 AM', '11 AM', '12 PM', '1 PM', '2 PM', '3 PM']


@pytest.mark.parametrize(
    'reference_date',
    [date(2024, 12, 31), date(2025, 1, 1), date(2024, 2, 29), date(2024, 6, 16)],
)
@pytest.mark.parametrize('week_start_day', [0, 6])
def test_week_view_always_has_seven_consecutive_buckets(reference_date: date, week_start_day: int) -> None:
    settings = CalendarSettings(week_start_day=week_start_day, weekend_days=frozenset({5, 6}))
    engine = _engine(settings=settings)

    view = engine.build_view(reference_date, ViewMode.WEEK, today=reference_date)

    assert len(view.buckets) == 7
    assert view.buckets[0].date.weekday() == week_start_day
    assert reference_date in [bucket.date for bucket in view.buckets]
    assert (view.range_end - view.range_start).days == 6


@pytest.mark.parametrize('year', [2023, 2024, 2026])
@pytest.mark.parametrize('week_start_day', [0, 6])
def test_month_grid_is_padded_to_whole_weeks(year: int, week_start_day: int) -> None:
    for month in range(1, 13):
        days = month_grid_dates(year, month, week_start_day)

        assert len(days) % 7 == 0
        assert days[0].weekday() == week_start_day
        assert days[0] <= date(year, month, 1)
        assert sum(1 for day in days if day.month == month) in {28, 29, 30, 31}


def test_month_view_marks_padding_days_outside_current_month() -> None:
    view = _engine().build_view(date(2024, 6, 10), ViewMode.MONTH, today=date(2024, 6, 10))

    assert view.buckets[0].date == date(2024, 5, 27)
    assert view.buckets[0].in_current_month is False
    assert view.buckets[-1].date == date(2024, 6, 30)
    assert view.buckets[-1].in_current_month is True
    assert len(view.buckets) == 35


def test_month_view_pads_trailing_days_from_next_month() -> None:
    view = _engine().build_view(date(2024, 7, 1), ViewMode.MONTH, today=date(2024, 7, 1))

    assert view.buckets[0].date == date(2024, 7, 1)
    assert view.buckets[-1].date == date(2024, 8, 4)
    assert view.buckets[-1].in_current_month is False


def test_week_view_suppresses_weekend_appointments() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-15', '09:00'),
        _appointment('a-2', '2024-06-14', '09:00'),
    )

    view = engine.build_view(date(2024, 6, 12), ViewMode.WEEK, today=date(2024, 6, 12))
    saturday = next(bucket for bucket in view.buckets if bucket.date == date(2024, 6, 15))
    friday = next(bucket for bucket in view.buckets if bucket.date == date(2024, 6, 14))

    assert saturday.is_office_day is False
    assert saturday.blocks == []
    assert saturday.suppressed_count == 1
    assert [block.appointment_id for block in friday.blocks] == ['a-2']
    assert len(engine.appointments_for_day(date(2024, 6, 15))) == 1


def test_month_view_keeps_weekend_appointments() -> None:
    engine = _engine(_appointment('a-1', '2024-06-15', '09:00'))

    view = engine.build_view(date(2024, 6, 1), ViewMode.MONTH, today=date(2024, 6, 1))
    saturday = next(bucket for bucket in view.buckets if bucket.date == date(2024, 6, 15))

    assert [block.appointment_id for block in saturday.blocks] == ['a-1']
    assert saturday.is_office_day is False


def test_reserved_block_renders_without_patient_link() -> None:
    engine = _engine(_appointment('a-1', '2024-06-10', '12:00', patient_id='reserved', notes='Lunch break'))

    view = engine.build_view(date(2024, 6, 10), ViewMode.DAY, today=date(2024, 6, 10))
    [block] = view.buckets[0].blocks

    assert block.is_reserved is True
    assert block.link is None
    assert block.patient_id is None
    assert block.patient_name is None
    assert block.label == 'Lunch break'
    assert view.buckets[0].has_appointments is False


def test_month_overflow_badge_counts_real_appointments_only() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-10', '08:00'),
        _appointment('a-2', '2024-06-10', '09:00'),
        _appointment('a-3', '2024-06-10', '10:00'),
        _appointment('a-4', '2024-06-10', '12:00', patient_id='reserved', notes='Staff meeting'),
        _appointment('a-5', '2024-06-10', '14:00', patient_id='p-2'),
    )

    view = engine.build_view(date(2024, 6, 10), ViewMode.MONTH, today=date(2024, 6, 10))
    bucket = next(bucket for bucket in view.buckets if bucket.date == date(2024, 6, 10))

    assert [block.appointment_id for block in bucket.blocks] == ['a-1', 'a-2', 'a-3']
    assert bucket.hidden_count == 1


def test_month_overflow_badge_is_zero_when_only_reserved_blocks_are_hidden() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-10', '08:00'),
        _appointment('a-2', '2024-06-10', '09:00'),
        _appointment('a-3', '2024-06-10', '10:00'),
        _appointment('a-4', '2024-06-10', '12:00', patient_id='reserved'),
    )

    view = engine.build_view(date(2024, 6, 10), ViewMode.MONTH, today=date(2024, 6, 10))
    bucket = next(bucket for bucket in view.buckets if bucket.date == date(2024, 6, 10))

    assert bucket.hidden_count == 0


def test_year_view_reports_presence_per_month() -> None:
    engine = _engine(
        _appointment('a-1', '2024-03-05', '09:00'),
        _appointment('a-2', '2024-03-06', '12:00', patient_id='reserved'),
    )

    view = engine.build_view(date(2024, 6, 10), ViewMode.YEAR, today=date(2024, 6, 10))
    march = view.months[2]

    assert len(view.months) == 12
    assert view.buckets == []
    assert march.label == 'March'
    assert {bucket.date for bucket in march.buckets if bucket.has_appointments} == {date(2024, 3, 5)}
    assert all(bucket.blocks == [] for bucket in march.buckets)
    assert all(len(month.buckets) % 7 == 0 for month in view.months)


def test_agenda_sorts_by_time_and_counts_completed() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-10', '14:00', status='completed'),
        _appointment('a-2', '2024-06-10', '08:30'),
        _appointment('a-3', '2024-06-10', '12:00', patient_id='reserved', status='completed'),
    )

    agenda = engine.agenda(date(2024, 6, 10))

    assert [block.appointment_id for block in agenda.blocks] == ['a-2', 'a-3', 'a-1']
    assert agenda.total_count == 2
    assert agenda.completed_count == 1


def test_block_flags_appointments_outside_window() -> None:
    engine = _engine(
        _appointment('a-1', '2024-06-10', '07:30'),
        _appointment('a-2', '2024-06-10', '15:45', duration=30),
        _appointment('a-3', '2024-06-10', '15:30', duration=30),
    )

    blocks = engine.build_view(date(2024, 6, 10), ViewMode.DAY, today=date(2024, 6, 10)).buckets[0].blocks

    assert [block.outside_window for block in blocks] == [True, True, False]
    assert blocks[0].slot_index == -1


def test_style_lookups_fall_back_for_unknown_values() -> None:
    assert status_style('in-progress') == 'warning'
    assert status_style('rescheduled') == 'unknown'
    assert type_label('follow-up') == 'Follow-up'
    assert type_label('tele-health') == 'Tele Health'


@pytest.mark.parametrize(
    ('view_mode', 'expected'),
    [
        (ViewMode.DAY, 'Monday, June 10, 2024'),
        (ViewMode.WEEK, 'Jun 10 - Jun 16, 2024'),
        (ViewMode.MONTH, 'June 2024'),
        (ViewMode.YEAR, '2024'),
    ],
)
def test_view_title_matches_view_mode(view_mode: ViewMode, expected: str) -> None:
    assert view_title(view_mode, date(2024, 6, 12 if view_mode == ViewMode.WEEK else 10), SETTINGS) == expected


def test_format_hour_label_handles_noon_and_midnight() -> None:
    assert format_hour_label(0) == '12 AM'
    assert format_hour_label(12) == '12 PM'
    assert format_hour_label(15) == '3 PM'


@pytest.mark.parametrize(
    'overrides',
    [
        {'window_start_hour': 16, 'window_end_hour': 8},
        {'slot_height_px': 0},
        {'week_start_day': 7},
        {'min_block_height_px': -1},
    ],
)
def test_calendar_settings_rejects_invalid_values(overrides: dict) -> None:
    with pytest.raises(ValueError):
        CalendarSettings(**overrides)
