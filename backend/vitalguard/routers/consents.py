from fastapi import APIRouter, Depends, HTTPException, Query
from vitalguard.auth import get_current_user, require_roles
from vitalguard.schemas.consent import ConsentGrant, ConsentGrantRequest, EligibilityResponse
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.get("", response_model=list[ConsentGrant])
async def list_consents(
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    if current_user.is_admin:
        return registry.consents.grants()
    if current_user.role == Role.PATIENT:
        return registry.consents.grants_for(current_user.name)
    raise HTTPException(status_code=403, detail="Only patients and admins can view consents")


@router.post("", response_model=ConsentGrant, status_code=201)
async def grant_consent(
    body: ConsentGrantRequest,
    current_user: Identity = Depends(require_roles(Role.PATIENT)),
    registry: ServiceRegistry = Depends(get_registry),
):
    grant = registry.consents.grant(current_user, body.grantee_type, body.grantee_name, body.duration)
    if grant is None:
        raise HTTPException(status_code=400, detail="Grantee name is required")
    return grant


@router.post("/{grant_id}/revoke", response_model=ConsentGrant)
async def revoke_consent(
    grant_id: str,
    current_user: Identity = Depends(require_roles(Role.PATIENT)),
    registry: ServiceRegistry = Depends(get_registry),
):
    revoked = registry.consents.revoke(current_user, grant_id)
    if revoked is None:
        raise HTTPException(status_code=404, detail=f"No active consent {grant_id}")
    return revoked


@router.get("/eligibility", response_model=EligibilityResponse)
async def check_eligibility(
    patient_name: str = Query(...),
    grantee_name: str = Query(...),
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
):
    return EligibilityResponse(
        patient_name=patient_name,
        grantee_name=grantee_name,
        eligible=registry.consents.is_access_eligible(patient_name, grantee_name),
    )
