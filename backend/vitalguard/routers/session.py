from fastapi import APIRouter, Depends
from vitalguard.auth import get_current_user
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.session import NavigateRequest, SessionState
from vitalguard.services.registry import ServiceRegistry, get_registry
from vitalguard.services.session_service import CareSession
from vitalguard.services.visibility import allowed_pages

router = APIRouter()


def _state(identity: Identity, session: CareSession, expired: int = 0) -> SessionState:
    return SessionState(
        uid=identity.uid,
        active_page=session.active_page,
        selected_patient_id=session.selected_patient_id,
        allowed_pages=allowed_pages(identity.role),
        expired_consents=expired,
    )


@router.get("", response_model=SessionState)
async def get_session(
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    return _state(current_user, registry.sessions.get(current_user))


@router.post("/navigate", response_model=SessionState)
async def navigate(
    body: NavigateRequest,
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    # A page the role may not open is answered with the unchanged session.
    session, expired = registry.sessions.navigate(current_user, body.page)
    return _state(current_user, session, expired)
