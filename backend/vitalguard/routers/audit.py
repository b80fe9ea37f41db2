from fastapi import APIRouter, Depends, Query
from vitalguard.auth import require_roles
from vitalguard.schemas.audit import AuditEntry
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.get("", response_model=list[AuditEntry])
async def list_audit_entries(
    limit: int = Query(100, ge=1, le=1000),
    current_user: Identity = Depends(require_roles(Role.ADMIN)),
    registry: ServiceRegistry = Depends(get_registry),
):
    """Newest first."""
    return registry.audit.entries()[:limit]
