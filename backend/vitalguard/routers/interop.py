from fastapi import APIRouter, Depends
from vitalguard.auth import require_roles
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.interop import InteropRequest, InteropResult, ReferralRecord
from vitalguard.services.interop_service import build_referrals, request_transfer
from vitalguard.services.patient_service import PatientDirectory, get_directory
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.get("/referrals", response_model=list[ReferralRecord])
async def list_referrals(
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    return build_referrals(await directory.list_active(), registry.clock())


@router.post("/requests", response_model=InteropResult)
async def request_record_transfer(
    body: InteropRequest,
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    patient = await directory.get(body.patient_id)
    return request_transfer(registry.consents, registry.audit, current_user, patient, body.hospital)
