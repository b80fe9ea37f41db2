from fastapi import APIRouter, Depends
from vitalguard.auth import get_current_user
from vitalguard.schemas.enums import CareMode, StatusLevel
from vitalguard.schemas.identity import Identity
from vitalguard.services.patient_service import PatientDirectory, get_directory, load_visible_patients
from vitalguard.services.registry import ServiceRegistry, get_registry

router = APIRouter()


@router.get("/stats")
async def get_dashboard_stats(
    current_user: Identity = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
    directory: PatientDirectory = Depends(get_directory),
):
    patients = await load_visible_patients(directory, registry, current_user)
    by_status = {level.value: 0 for level in StatusLevel}
    for p in patients:
        by_status[p.status_level.value] += 1
    return {
        "total_patients": len(patients),
        "by_status": by_status,
        "monitored": sum(1 for p in patients if p.care_mode == CareMode.MONITORED),
        "pending_approvals": (
            sum(1 for u in registry.identities.all() if not u.is_approved)
            if current_user.is_admin else 0
        ),
    }
