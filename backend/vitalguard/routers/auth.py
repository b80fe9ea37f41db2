from fastapi import APIRouter, Depends, HTTPException
from vitalguard.auth import create_token, get_current_user, require_roles
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import (
    ApproveRequest,
    AssignRequest,
    Identity,
    LoginRequest,
    SignupRequest,
    TokenResponse,
)
from vitalguard.services.patient_service import PatientDirectory, get_directory
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.post("/signup", response_model=Identity, status_code=201)
async def signup(body: SignupRequest, registry: ServiceRegistry = Depends(get_registry)):
    identity, error = registry.identities.signup(body.name, body.email, body.role)
    if error:
        raise HTTPException(status_code=400, detail=error)
    return identity


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, registry: ServiceRegistry = Depends(get_registry)):
    identity, error = registry.identities.login(body.email, body.role)
    if error:
        raise HTTPException(status_code=401, detail=error)
    registry.sessions.open(identity)
    return TokenResponse(access_token=create_token(identity, registry), identity=identity)


@router.post("/logout")
async def logout(
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    registry.audit.record(current_user, "Logged out", current_user.role.value)
    registry.sessions.close(current_user)
    return {"logged_out": True}


@router.get("/me", response_model=Identity)
async def me(current_user: Identity = Depends(get_current_user)):
    return current_user


@router.get("/users", response_model=list[Identity])
async def list_users(
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
):
    return registry.identities.all()


@router.post("/approve", response_model=Identity)
async def approve_user(
    body: ApproveRequest,
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    approved = registry.identities.approve(body.email, body.role)
    if not approved:
        raise HTTPException(status_code=404, detail=f"No {body.role} account for {body.email}")
    if registry.settings.auto_assign_patients:
        patients = await directory.list_active()
        registry.identities.sync_assignments([p.id for p in patients])
    registry.audit.record(current_user, "Approved staff account", f"{approved.role.value}:{approved.email}")
    return registry.identities.get(approved.uid)


@router.put("/users/{uid}/assignments", response_model=Identity)
async def assign_patients(
    uid: str,
    body: AssignRequest,
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
):
    identity = registry.identities.assign(uid, body.patient_ids)
    if not identity:
        raise HTTPException(status_code=404, detail=f"User {uid} not found")
    registry.audit.record(current_user, "Assigned patients", f"{uid}:{len(body.patient_ids)}")
    return identity
