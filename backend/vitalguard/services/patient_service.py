"""
Patient directory: the canonical patient list and its vitals history.

Backed by the relational store through an AsyncSession. No optimistic or
pessimistic locking: concurrent updates to the same record are
last-write-wins.
"""

import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Optional
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from vitalguard.adapters import (
    care_mode_from_backend,
    care_mode_to_backend,
    patient_from_backend,
    row_to_dict,
    status_from_backend,
    status_to_backend,
    vitals_from_backend,
    vitals_to_backend,
)
from vitalguard.clock import Clock, as_utc, utc_now
from vitalguard.database import get_db
from vitalguard.exceptions import UnknownPatientError
from vitalguard.models.patient import AISummary, DischargeReport, Patient, VitalsReading
from vitalguard.schemas.enums import StatusLevel
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.patient import PatientCreate, PatientRecord, PatientUpdate, VitalsCreate, VitalsSample
from vitalguard.schemas.summary import PatientSummary
from vitalguard.services.registry import ServiceRegistry, get_registry
from vitalguard.services.summary_service import CareAI
from vitalguard.services.visibility import scope_patients

logger = logging.getLogger(__name__)


def length_of_stay_days(admission: Optional[datetime], discharge: datetime) -> int:
    if admission is None:
        return 0
    seconds = (as_utc(discharge) - as_utc(admission)).total_seconds()
    return max(0, math.ceil(seconds / 86400))


class PatientDirectory:
    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    async def _row(self, patient_id: str) -> Patient:
        result = await self.db.execute(select(Patient).where(Patient.patient_id == patient_id))
        row = result.scalar_one_or_none()
        if not row:
            raise UnknownPatientError(patient_id)
        return row

    async def _vitals_by_patient(self, patient_ids: list[str]) -> dict[str, list[dict]]:
        grouped: dict[str, list[dict]] = defaultdict(list)
        if not patient_ids:
            return grouped
        result = await self.db.execute(
            select(VitalsReading)
            .where(VitalsReading.patient_id.in_(patient_ids))
            .order_by(VitalsReading.timestamp, VitalsReading.id)
        )
        for reading in result.scalars().all():
            grouped[reading.patient_id].append(row_to_dict(reading))
        return grouped

    async def _to_records(self, rows: list[Patient]) -> list[PatientRecord]:
        vitals = await self._vitals_by_patient([r.patient_id for r in rows])
        return [
            patient_from_backend(row_to_dict(r), vitals.get(r.patient_id, []), row_id=r.id)
            for r in rows
        ]

    async def list_active(self) -> list[PatientRecord]:
        """Active patients, most recently admitted first."""
        result = await self.db.execute(
            select(Patient)
            .where(Patient.active.is_(True))
            .order_by(Patient.admission_time.desc(), Patient.id.desc())
        )
        return await self._to_records(result.scalars().all())

    async def list_discharged(self) -> list[PatientRecord]:
        result = await self.db.execute(
            select(Patient)
            .where(Patient.active.is_(False))
            .order_by(Patient.discharge_time.desc(), Patient.id.desc())
        )
        return await self._to_records(result.scalars().all())

    async def get(self, patient_id: str) -> PatientRecord:
        row = await self._row(patient_id)
        return (await self._to_records([row]))[0]

    async def create(self, data: PatientCreate) -> PatientRecord:
        now = self.clock()
        payload = data.model_dump()
        # Normalize through the adapter so unknown modes land on task_based.
        payload["care_mode"] = care_mode_to_backend(care_mode_from_backend(payload["care_mode"]))
        patient = Patient(
            patient_id=uuid.uuid4().hex[:12],
            status="stable",
            active=True,
            admission_time=now,
            created_at=now,
            updated_at=now,
            **payload,
        )
        self.db.add(patient)
        await self.db.flush()
        await self.db.refresh(patient)
        logger.info("Admitted patient %s", patient.patient_id)
        return (await self._to_records([patient]))[0]

    async def update(self, patient_id: str, data: PatientUpdate) -> PatientRecord:
        row = await self._row(patient_id)
        # Null leaves a field unchanged.
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in update_data:
            update_data["status"] = status_to_backend(status_from_backend(update_data["status"]))
        for key, value in update_data.items():
            setattr(row, key, value)
        row.updated_at = self.clock()
        await self.db.flush()
        await self.db.refresh(row)
        return (await self._to_records([row]))[0]

    async def add_vitals(self, patient_id: str, data: VitalsCreate) -> VitalsSample:
        await self._row(patient_id)
        reading = VitalsReading(patient_id=patient_id, timestamp=self.clock(), **data.model_dump())
        self.db.add(reading)
        await self.db.flush()
        return vitals_from_backend(row_to_dict(reading))

    async def set_status(self, patient_id: str, level: StatusLevel) -> PatientRecord:
        row = await self._row(patient_id)
        row.status = status_to_backend(level)
        row.updated_at = self.clock()
        await self.db.flush()
        return (await self._to_records([row]))[0]

    async def save_summary(self, patient_id: str, summary: PatientSummary) -> datetime:
        record = AISummary(
            patient_id=patient_id,
            overview=summary.overview,
            key_points=summary.key_points,
            recent_changes=summary.recent_changes,
            recommendations=summary.recommendations,
            generated_at=self.clock(),
        )
        self.db.add(record)
        await self.db.flush()
        return record.generated_at

    async def latest_summary(self, patient_id: str) -> Optional[tuple[PatientSummary, datetime]]:
        result = await self.db.execute(
            select(AISummary)
            .where(AISummary.patient_id == patient_id)
            .order_by(AISummary.generated_at.desc(), AISummary.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if not row:
            return None
        summary = PatientSummary(
            overview=row.overview,
            key_points=row.key_points or [],
            recent_changes=row.recent_changes or [],
            recommendations=row.recommendations or [],
        )
        return summary, as_utc(row.generated_at)

    async def discharge(self, patient_id: str, ai: CareAI) -> dict:
        """Snapshot the stay into a discharge report and mark the record inactive."""
        row = await self._row(patient_id)
        record = (await self._to_records([row]))[0]
        discharge_time = self.clock()
        stay = length_of_stay_days(record.admission_time, discharge_time)
        narrative = await ai.discharge_summary(record, stay)

        history = record.vitals_history
        report = {
            "patient_id": record.id,
            "patient_name": record.name,
            "age": record.age,
            "gender": record.gender,
            "room": record.room_id,
            "admission_time": record.admission_time.isoformat() if record.admission_time else None,
            "discharge_time": discharge_time.isoformat(),
            "length_of_stay": stay,
            "diagnosis": record.diagnosis,
            "condition": record.condition,
            "final_status": status_to_backend(record.status_level),
            "care_mode": care_mode_to_backend(record.care_mode),
            "vitals_summary": {
                "total_readings": len(history),
                "first_reading": vitals_to_backend(history[0]) if history else None,
                "last_reading": vitals_to_backend(history[-1]) if history else None,
            },
            "ai_discharge_summary": narrative,
            "generated_at": discharge_time.isoformat(),
        }
        # JSON column: timestamps inside the vitals snapshot must be strings.
        for key in ("first_reading", "last_reading"):
            reading = report["vitals_summary"][key]
            if reading:
                reading["timestamp"] = reading["timestamp"].isoformat()

        self.db.add(DischargeReport(patient_id=record.id, report_data=report, generated_at=discharge_time))
        row.active = False
        row.discharge_time = discharge_time
        row.updated_at = discharge_time
        await self.db.flush()
        logger.info("Discharged patient %s after %d day(s)", record.id, stay)
        return report

    async def discharge_report(self, patient_id: str) -> Optional[dict]:
        result = await self.db.execute(
            select(DischargeReport)
            .where(DischargeReport.patient_id == patient_id)
            .order_by(DischargeReport.generated_at.desc(), DischargeReport.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return row.report_data if row else None


async def get_directory(
    db: AsyncSession = Depends(get_db),
    registry: ServiceRegistry = Depends(get_registry),
) -> PatientDirectory:
    return PatientDirectory(db, registry.clock)


async def load_visible_patients(
    directory: PatientDirectory,
    registry: ServiceRegistry,
    identity: Identity,
) -> list[PatientRecord]:
    """Active directory scoped to ``identity``, after the optional round-robin fallback."""
    patients = await directory.list_active()
    if registry.settings.auto_assign_patients:
        if registry.identities.sync_assignments([p.id for p in patients]):
            identity = registry.identities.get(identity.uid) or identity
    return scope_patients(identity, patients)
