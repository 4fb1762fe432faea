from calendar import monthrange
from datetime import date, timedelta
from typing import Callable

from clinic_backend.calendar_view.engine import CalendarEngine
from clinic_backend.calendar_view.schemas import CalendarViewResponse, ViewMode


def _add_months(value: date, months: int, anchor_day: int) -> date:
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(anchor_day, monthrange(year, month)[1]))


def shift_reference_date(
    reference_date: date,
    view_mode: ViewMode,
    direction: int,
    anchor_day: int | None = None,
) -> date:
    """Step the reference date by one unit of the view's granularity.

    Month and year steps land on ``anchor_day`` clamped to the target month's
    length, so stepping back restores a date that was clamped going forward.
    """
    if direction not in (-1, 1):
        raise ValueError('Direction must be 1 (forward) or -1 (backward).')

    anchor_day = anchor_day or reference_date.day
    if not 1 <= anchor_day <= 31:
        raise ValueError('Anchor day must be between 1 and 31.')

    if view_mode == ViewMode.DAY:
        return reference_date + timedelta(days=direction)
    if view_mode == ViewMode.WEEK:
        return reference_date + timedelta(days=7 * direction)
    if view_mode == ViewMode.MONTH:
        return _add_months(reference_date, direction, anchor_day)
    return _add_months(reference_date, 12 * direction, anchor_day)


class CalendarSession:
    """The (reference date, view mode) pair a calendar page is looking at."""

    def __init__(
        self,
        engine: CalendarEngine,
        reference_date: date | None = None,
        view_mode: ViewMode = ViewMode.WEEK,
        today: Callable[[], date] = date.today,
    ):
        self.engine = engine
        self._today = today
        self.view_mode = ViewMode(view_mode)
        self.reference_date = reference_date or today()
        self.anchor_day = self.reference_date.day

    def select_view(self, view_mode: ViewMode) -> None:
        self.view_mode = ViewMode(view_mode)

    def go_to_date(self, reference_date: date) -> None:
        self.reference_date = reference_date
        self.anchor_day = reference_date.day

    def go_to_today(self) -> None:
        self.go_to_date(self._today())

    def advance(self, direction: int) -> date:
        self.reference_date = shift_reference_date(
            self.reference_date,
            self.view_mode,
            direction,
            anchor_day=self.anchor_day,
        )
        if self.view_mode in (ViewMode.DAY, ViewMode.WEEK):
            self.anchor_day = self.reference_date.day
        return self.reference_date

    def render(self) -> CalendarViewResponse:
        return self.engine.build_view(
            self.reference_date,
            self.view_mode,
            today=self._today(),
            anchor_day=self.anchor_day,
        )
