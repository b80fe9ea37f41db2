from fastapi import APIRouter, Depends, HTTPException
from vitalguard.auth import require_roles
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.integrity import RecordProof, VerifyRequest
from vitalguard.services.patient_service import PatientDirectory, get_directory, load_visible_patients
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.post("/verify", response_model=RecordProof)
async def verify_record(
    body: VerifyRequest,
    current_user: Identity = Depends(require_roles(Role.ADMIN, Role.DOCTOR)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    record = await directory.get(body.patient_id)
    visible = await load_visible_patients(directory, registry, current_user)
    if not any(p.id == record.id for p in visible):
        raise HTTPException(status_code=403, detail=f"Access denied to patient {body.patient_id}")
    return registry.integrity.verify(record, body.simulate_tamper, actor=current_user)


@router.get("/proofs", response_model=list[RecordProof])
async def list_proofs(
    current_user: Identity = Depends(require_roles(Role.ADMIN, Role.DOCTOR)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    proofs = registry.integrity.proofs()
    if current_user.is_admin:
        return proofs
    visible = {p.id for p in await load_visible_patients(directory, registry, current_user)}
    return [p for p in proofs if p.patient_id in visible]
