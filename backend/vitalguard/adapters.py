"""
Mapping between the backend's snake_case records and the client models.

The persistence layer speaks ``care_mode = live_monitoring | task_based`` and
lower-case ``status``; the client models use upper-case enums and camelCase
JSON. Every field that crosses the boundary is listed here explicitly.
"""

from typing import Optional
from vitalguard.clock import as_utc
from vitalguard.schemas.enums import CareMode, StatusLevel
from vitalguard.schemas.patient import PatientRecord, VitalsSample

# backend key -> PatientRecord attribute
PATIENT_FIELDS = {
    "patient_id": "id",
    "name": "name",
    "age": "age",
    "gender": "gender",
    "room": "room_id",
    "condition": "condition",
    "diagnosis": "diagnosis",
    "care_mode": "care_mode",
    "status": "status_level",
    "updated_at": "last_updated",
    "active": "active",
    "admission_time": "admission_time",
    "discharge_time": "discharge_time",
    "notes": "notes",
}

# backend key -> VitalsSample attribute
VITALS_FIELDS = {
    "timestamp": "timestamp",
    "heart_rate": "heart_rate",
    "systolic_bp": "systolic_bp",
    "diastolic_bp": "diastolic_bp",
    "spo2": "spo2",
    "respiratory_rate": "resp_rate",
    "temperature": "temperature",
}

DATETIME_FIELDS = ("updated_at", "admission_time", "discharge_time", "timestamp")

CARE_MODE_FROM_BACKEND = {
    "live_monitoring": CareMode.MONITORED,
    "task_based": CareMode.TASK_BASED,
}
CARE_MODE_TO_BACKEND = {v: k for k, v in CARE_MODE_FROM_BACKEND.items()}


def care_mode_from_backend(value: Optional[str]) -> CareMode:
    return CARE_MODE_FROM_BACKEND.get((value or "").lower(), CareMode.TASK_BASED)


def care_mode_to_backend(mode: CareMode) -> str:
    return CARE_MODE_TO_BACKEND[CareMode(mode)]


def status_from_backend(value: str) -> StatusLevel:
    """Raises ValueError for anything outside stable/attention/critical."""
    return StatusLevel(str(value).upper())


def status_to_backend(level: StatusLevel) -> str:
    return StatusLevel(level).value.lower()


def format_display_id(row_id: int) -> str:
    return f"PT-{str(row_id).zfill(4)}"


def row_to_dict(row) -> dict:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


def vitals_from_backend(payload: dict) -> VitalsSample:
    values = {attr: payload.get(key) for key, attr in VITALS_FIELDS.items()}
    values["timestamp"] = as_utc(values["timestamp"])
    return VitalsSample(**values)


def vitals_to_backend(sample: VitalsSample) -> dict:
    return {key: getattr(sample, attr) for key, attr in VITALS_FIELDS.items()}


def patient_from_backend(
    payload: dict,
    vitals: Optional[list[dict]] = None,
    row_id: Optional[int] = None,
) -> PatientRecord:
    values = {}
    for key, attr in PATIENT_FIELDS.items():
        value = payload.get(key)
        if key in DATETIME_FIELDS:
            value = as_utc(value)
        values[attr] = value

    values["care_mode"] = care_mode_from_backend(payload.get("care_mode"))
    values["status_level"] = status_from_backend(payload.get("status") or "stable")
    values["active"] = bool(payload.get("active", True))
    values["display_id"] = format_display_id(row_id if row_id is not None else payload.get("id") or 0)
    values["vitals_history"] = [vitals_from_backend(v) for v in (vitals or [])]
    return PatientRecord(**values)


def patient_to_backend(record: PatientRecord) -> dict:
    payload = {key: getattr(record, attr) for key, attr in PATIENT_FIELDS.items()}
    payload["care_mode"] = care_mode_to_backend(record.care_mode)
    payload["status"] = status_to_backend(record.status_level)
    return payload
