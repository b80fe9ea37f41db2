import logging
import uuid
from typing import Optional
from vitalguard.clock import Clock, utc_now
from vitalguard.schemas.audit import AuditEntry
from vitalguard.schemas.enums import VerificationStatus
from vitalguard.schemas.identity import Identity
from vitalguard.services.fingerprint import transaction_id
from vitalguard.storage import AUDIT_KEY, KeyValueStorage

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only action trail, newest entry first."""

    def __init__(self, storage: KeyValueStorage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def entries(self) -> list[AuditEntry]:
        return [AuditEntry.model_validate(e) for e in self.storage.load(AUDIT_KEY)]

    def record(
        self,
        actor: Optional[Identity],
        action: str,
        target: str,
        status: VerificationStatus = VerificationStatus.VERIFIED,
    ) -> Optional[AuditEntry]:
        if actor is None:
            return None
        now = self.clock()
        entry = AuditEntry(
            id=uuid.uuid4().hex,
            actor_name=actor.name,
            actor_role=actor.role,
            action=action,
            target=target,
            timestamp=now,
            verification_status=status,
            fingerprint=transaction_id(f"{action}-{target}", now),
        )
        records = self.storage.load(AUDIT_KEY)
        self.storage.save(AUDIT_KEY, [entry.model_dump(mode="json", by_alias=True)] + records)
        logger.debug("Audit: %s %s -> %s", actor.uid, action, target)
        return entry
