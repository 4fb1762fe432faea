"""Read-only sources of patients and appointments for the calendar."""

import json
import logging
from pathlib import Path
from threading import Lock

from pydantic import ValidationError
from sqlalchemy.orm import Session

from clinic_backend.calendar_view.schemas import Appointment, Patient
from clinic_backend.core import config
from clinic_backend.models.appointment import Appointment as AppointmentRow
from clinic_backend.models.patient import Patient as PatientRow

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE_PATH = Path(__file__).with_name('mock_data.json')

_fixture_lock = Lock()
_fixture_providers: dict[str, 'FixtureProvider'] = {}


class FixtureError(ValueError):
    """Raised when the calendar data cannot be parsed or joined."""


def join_appointments(
    raw_appointments: list[dict],
    patients: list[Patient],
    reserved_patient_id: str,
) -> list[Appointment]:
    patients_by_id = {patient.id: patient for patient in patients}
    appointments: list[Appointment] = []

    for index, raw in enumerate(raw_appointments):
        patient_id = raw.get('patient_id')
        if patient_id == reserved_patient_id:
            patient = None
        elif patient_id in patients_by_id:
            patient = patients_by_id[patient_id]
        else:
            raise FixtureError(
                f'Appointment record {index} ({raw.get("id")!r}) refers to unknown patient {patient_id!r}.'
            )

        try:
            appointments.append(Appointment.model_validate({**raw, 'patient': patient}))
        except ValidationError as exc:
            raise FixtureError(f'Invalid appointment record {index} ({raw.get("id")!r}): {exc}') from exc

    return appointments


def parse_patients(raw_patients: list[dict]) -> list[Patient]:
    patients: list[Patient] = []
    for index, raw in enumerate(raw_patients):
        try:
            patients.append(Patient.model_validate(raw))
        except ValidationError as exc:
            raise FixtureError(f'Invalid patient record {index} ({raw.get("id")!r}): {exc}') from exc
    return patients


class FixtureProvider:
    """Serves records parsed once from a JSON fixture."""

    def __init__(self, patients: list[Patient], appointments: list[Appointment]):
        self._patients = tuple(patients)
        self._appointments = tuple(appointments)

    @classmethod
    def from_data(cls, data: dict, reserved_patient_id: str = config.RESERVED_PATIENT_ID) -> 'FixtureProvider':
        if not isinstance(data, dict):
            raise FixtureError('Fixture must be a JSON object.')

        patients = parse_patients(data.get('patients', []))
        appointments = join_appointments(data.get('appointments', []), patients, reserved_patient_id)
        return cls(patients, appointments)

    @classmethod
    def from_path(cls, path: str | Path, reserved_patient_id: str = config.RESERVED_PATIENT_ID) -> 'FixtureProvider':
        try:
            data = json.loads(Path(path).read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as exc:
            raise FixtureError(f'Could not read calendar fixture {path}: {exc}') from exc

        provider = cls.from_data(data, reserved_patient_id)
        logger.info(
            'Loaded calendar fixture %s: %d patients, %d appointments.',
            path,
            len(provider._patients),
            len(provider._appointments),
        )
        return provider

    def list_patients(self) -> tuple[Patient, ...]:
        return self._patients

    def list_appointments(self) -> tuple[Appointment, ...]:
        return self._appointments


def get_fixture_provider(reserved_patient_id: str = config.RESERVED_PATIENT_ID) -> FixtureProvider:
    # Joined records depend on the sentinel, so the cache is keyed by it.
    provider = _fixture_providers.get(reserved_patient_id)
    if provider is not None:
        return provider

    with _fixture_lock:
        if reserved_patient_id not in _fixture_providers:
            _fixture_providers[reserved_patient_id] = FixtureProvider.from_path(
                config.FIXTURE_PATH or DEFAULT_FIXTURE_PATH,
                reserved_patient_id,
            )

    return _fixture_providers[reserved_patient_id]


class SqlAlchemyProvider:
    """Reads calendar records through the ORM models, never writing."""

    def __init__(self, db: Session, reserved_patient_id: str = config.RESERVED_PATIENT_ID):
        self.db = db
        self.reserved_patient_id = reserved_patient_id

    def list_patients(self) -> list[Patient]:
        rows = self.db.query(PatientRow).order_by(PatientRow.last_name.asc(), PatientRow.first_name.asc()).all()

        patients: list[Patient] = []
        for row in rows:
            try:
                patients.append(Patient.model_validate(row))
            except ValidationError as exc:
                raise FixtureError(f'Invalid patient row {row.id!r}: {exc}') from exc
        return patients

    def list_appointments(self) -> list[Appointment]:
        rows = self.db.query(AppointmentRow).order_by(AppointmentRow.date.asc(), AppointmentRow.time.asc()).all()
        raw_appointments = [
            {
                'id': row.id,
                'patient_id': row.patient_id,
                'date': row.date,
                'time': row.time,
                'duration': row.duration,
                'type': row.type,
                'status': row.status,
                'notes': row.notes,
                'provider': row.provider or '',
            }
            for row in rows
        ]
        return join_appointments(raw_appointments, self.list_patients(), self.reserved_patient_id)
