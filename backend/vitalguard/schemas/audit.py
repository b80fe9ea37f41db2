from datetime import datetime
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import Role, VerificationStatus


class AuditEntry(CamelModel):
    id: str
    actor_name: str
    actor_role: Role
    action: str
    target: str
    timestamp: datetime
    verification_status: VerificationStatus = VerificationStatus.VERIFIED
    fingerprint: str

    class Config:
        frozen = True
