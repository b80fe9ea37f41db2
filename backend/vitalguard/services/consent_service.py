"""
Consent ledger: patient-granted, time-bounded access for external parties.

Expiry is not driven by a timer. ``sweep_expirations`` is called on page
navigation and moves ACTIVE grants past their ``expires_at`` to EXPIRED.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional
from vitalguard.clock import Clock, utc_now
from vitalguard.schemas.consent import ConsentGrant
from vitalguard.schemas.enums import ConsentDuration, ConsentStatus, GranteeType, Role
from vitalguard.schemas.identity import Identity
from vitalguard.services.audit_service import AuditLog
from vitalguard.services.fingerprint import fingerprint
from vitalguard.storage import CONSENTS_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

DURATION_DELTAS = {
    ConsentDuration.HOURS_24: timedelta(hours=24),
    ConsentDuration.DAYS_7: timedelta(days=7),
}


def consent_expiry(created_at: datetime, duration: ConsentDuration) -> Optional[datetime]:
    delta = DURATION_DELTAS.get(ConsentDuration(duration))
    if delta is None:
        return None
    return created_at + delta


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    if expires_at is None:
        return False
    return expires_at < now


class ConsentLedger:
    def __init__(self, storage: KeyValueStorage, audit: AuditLog, clock: Clock = utc_now):
        self.storage = storage
        self.audit = audit
        self.clock = clock

    def grants(self) -> list[ConsentGrant]:
        return [ConsentGrant.model_validate(g) for g in self.storage.load(CONSENTS_KEY)]

    def grants_for(self, patient_name: str) -> list[ConsentGrant]:
        return [g for g in self.grants() if g.patient_name == patient_name]

    def _save(self, grants: list[ConsentGrant]) -> None:
        self.storage.save(
            CONSENTS_KEY, [g.model_dump(mode="json", by_alias=True) for g in grants]
        )

    def grant(
        self,
        actor: Optional[Identity],
        grantee_type: GranteeType,
        grantee_name: str,
        duration: ConsentDuration,
    ) -> Optional[ConsentGrant]:
        """Record a new ACTIVE grant. Only patients may grant; anyone else is a no-op."""
        if actor is None or actor.role != Role.PATIENT:
            return None
        grantee_name = grantee_name.strip()
        if not grantee_name:
            return None

        created_at = self.clock()
        record = ConsentGrant(
            id=uuid.uuid4().hex,
            patient_name=actor.name,
            grantee_type=grantee_type,
            grantee_name=grantee_name,
            duration=duration,
            created_at=created_at,
            expires_at=consent_expiry(created_at, duration),
            status=ConsentStatus.ACTIVE,
            fingerprint=fingerprint(f"{actor.name}-{grantee_name}"),
        )
        self._save([record] + self.grants())
        self.audit.record(actor, "Granted consent", f"{record.grantee_type.value}:{grantee_name}")
        return record

    def revoke(self, actor: Optional[Identity], grant_id: str) -> Optional[ConsentGrant]:
        """ACTIVE -> REVOKED, by the patient who granted it."""
        if actor is None or actor.role != Role.PATIENT:
            return None
        revoked = None
        updated = []
        for g in self.grants():
            if (
                g.id == grant_id
                and g.status == ConsentStatus.ACTIVE
                and g.patient_name == actor.name
            ):
                g = g.model_copy(update={"status": ConsentStatus.REVOKED})
                revoked = g
            updated.append(g)
        if revoked is None:
            return None
        self._save(updated)
        self.audit.record(actor, "Revoked consent", f"{revoked.grantee_type.value}:{revoked.grantee_name}")
        return revoked

    def sweep_expirations(self, now: Optional[datetime] = None) -> int:
        """Expire every ACTIVE grant whose window has passed. Returns the number expired."""
        now = now or self.clock()
        expired = 0
        updated = []
        for g in self.grants():
            if g.status == ConsentStatus.ACTIVE and is_expired(g.expires_at, now):
                g = g.model_copy(update={"status": ConsentStatus.EXPIRED})
                expired += 1
            updated.append(g)
        if expired:
            self._save(updated)
            logger.info("Expired %d consent grant(s)", expired)
        return expired

    def is_access_eligible(self, patient_name: str, grantee_name: str) -> bool:
        # Any active HOSPITAL grant satisfies a hospital access check,
        # whatever hospital it names.
        return any(
            g.status == ConsentStatus.ACTIVE
            and g.patient_name == patient_name
            and (g.grantee_name == grantee_name or g.grantee_type == GranteeType.HOSPITAL)
            for g in self.grants()
        )
