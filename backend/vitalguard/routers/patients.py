from fastapi import APIRouter, Depends, HTTPException
from vitalguard.auth import get_current_user, require_roles
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.patient import (
    PatientCreate,
    PatientInsights,
    PatientListResponse,
    PatientRecord,
    PatientUpdate,
    VitalsCreate,
    VitalsSubmitResponse,
)
from vitalguard.schemas.summary import SummaryResponse
from vitalguard.services.patient_service import PatientDirectory, get_directory, load_visible_patients
from vitalguard.services.registry import ServiceRegistry, get_registry
from vitalguard.services.risk_service import flag_abnormal_vitals, risk_percent
from vitalguard.services.summary_service import latest_sample

router = APIRouter()

STAFF = (Role.ADMIN, Role.DOCTOR, Role.NURSE)


async def _visible_patient(
    patient_id: str,
    directory: PatientDirectory,
    registry: ServiceRegistry,
    identity: Identity,
) -> PatientRecord:
    """The active record if ``identity`` may see it; 404 if unknown, 403 if out of scope."""
    record = await directory.get(patient_id)
    visible = await load_visible_patients(directory, registry, identity)
    if not any(p.id == record.id for p in visible):
        raise HTTPException(status_code=403, detail=f"Access denied to patient {patient_id}")
    return record


@router.get("", response_model=PatientListResponse)
async def list_patients(
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    patients = await load_visible_patients(directory, registry, current_user)
    return PatientListResponse(patients=patients, total=len(patients))


@router.get("/discharged", response_model=PatientListResponse)
async def list_discharged(
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    directory: PatientDirectory = Depends(get_directory),
):
    patients = await directory.list_discharged()
    return PatientListResponse(patients=patients, total=len(patients))


@router.post("", response_model=PatientRecord, status_code=201)
async def create_patient(
    body: PatientCreate,
    current_user: Identity = Depends(require_roles(Role.ADMIN, Role.DOCTOR)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await directory.create(body)
    registry.audit.record(current_user, "Created patient record", f"{record.name} ({record.display_id})")
    return record


@router.get("/{patient_id}", response_model=PatientRecord)
async def get_patient(
    patient_id: str,
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await _visible_patient(patient_id, directory, registry, current_user)
    registry.sessions.select_patient(current_user, record.id)
    registry.audit.record(current_user, "Viewed patient record", f"{record.name} ({record.display_id})")
    return record


@router.put("/{patient_id}", response_model=PatientRecord)
async def update_patient(
    patient_id: str,
    body: PatientUpdate,
    current_user: Identity = Depends(require_roles(Role.ADMIN, Role.DOCTOR)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    await _visible_patient(patient_id, directory, registry, current_user)
    try:
        record = await directory.update(patient_id, body)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown status: {body.status}")
    registry.audit.record(current_user, "Updated patient record", f"{record.name} ({record.display_id})")
    return record


@router.post("/{patient_id}/vitals", response_model=VitalsSubmitResponse, status_code=201)
async def submit_vitals(
    patient_id: str,
    body: VitalsCreate,
    current_user: Identity = Depends(require_roles(*STAFF)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    await _visible_patient(patient_id, directory, registry, current_user)
    sample = await directory.add_vitals(patient_id, body)
    record = await directory.get(patient_id)
    analysis = await registry.ai.analyze_vitals(record, sample)
    record = await directory.set_status(patient_id, analysis.risk_level)
    registry.audit.record(
        current_user,
        "Recorded vitals",
        f"{record.name} ({record.display_id}): {analysis.risk_level.value}",
    )
    return VitalsSubmitResponse(sample=sample, analysis=analysis, patient=record)


@router.get("/{patient_id}/insights", response_model=PatientInsights)
async def patient_insights(
    patient_id: str,
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await _visible_patient(patient_id, directory, registry, current_user)
    sample = latest_sample(record)
    return PatientInsights(
        patient_id=record.id,
        status_level=record.status_level,
        risk_percent=risk_percent(record.status_level),
        abnormal_flags=flag_abnormal_vitals(sample),
        latest_vitals=sample,
    )


@router.post("/{patient_id}/summary", response_model=SummaryResponse)
async def generate_summary(
    patient_id: str,
    current_user: Identity = Depends(require_roles(*STAFF)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await _visible_patient(patient_id, directory, registry, current_user)
    registry.sessions.select_patient(current_user, record.id)
    summary = await registry.ai.summarize(record)
    generated_at = await directory.save_summary(record.id, summary)
    # The user may have moved to another patient while the model was running.
    session = registry.sessions.get(current_user)
    return SummaryResponse(
        patient_id=record.id,
        summary=summary,
        generated_at=generated_at,
        stale=not session.is_current(record.id),
    )


@router.get("/{patient_id}/summary", response_model=SummaryResponse)
async def get_summary(
    patient_id: str,
    current_user: Identity = Depends(require_roles(*STAFF)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await _visible_patient(patient_id, directory, registry, current_user)
    latest = await directory.latest_summary(record.id)
    if latest is None:
        raise HTTPException(status_code=404, detail=f"No summary for patient {patient_id}")
    summary, generated_at = latest
    return SummaryResponse(patient_id=record.id, summary=summary, generated_at=generated_at)


@router.post("/{patient_id}/discharge")
async def discharge_patient(
    patient_id: str,
    current_user: Identity = Depends(require_roles(Role.ADMIN, Role.DOCTOR)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await _visible_patient(patient_id, directory, registry, current_user)
    report = await directory.discharge(record.id, registry.ai)
    registry.audit.record(current_user, "Discharged patient", f"{record.name} ({record.display_id})")
    return report


@router.get("/{patient_id}/discharge-report")
async def get_discharge_report(
    patient_id: str,
    current_user: Identity = Depends(require_roles(*STAFF)),
    directory: PatientDirectory = Depends(get_directory),
):
    if not current_user.is_admin and patient_id not in current_user.assigned_patient_ids:
        raise HTTPException(status_code=403, detail=f"Access denied to patient {patient_id}")
    report = await directory.discharge_report(patient_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"No discharge report for patient {patient_id}")
    return report
