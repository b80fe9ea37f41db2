"""
Record verification against a simulated ledger digest.

There is no external ledger. The "ledger" digest is the record digest itself,
or a digest of a mutated payload when tampering is simulated.
"""

from typing import Optional
from vitalguard.clock import Clock, utc_now
from vitalguard.schemas.enums import VerificationStatus
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.integrity import RecordProof
from vitalguard.schemas.patient import PatientRecord
from vitalguard.services.audit_service import AuditLog
from vitalguard.services.fingerprint import fingerprint, transaction_id
from vitalguard.storage import KeyValueStorage, PROOFS_KEY

NETWORK = "Demo Integrity Ledger"


def record_payload(record: PatientRecord) -> str:
    last_updated = record.last_updated.isoformat() if record.last_updated else ""
    return f"{record.id}-{last_updated}-{record.status_level.value}"


class IntegrityService:
    def __init__(self, storage: KeyValueStorage, audit: AuditLog, clock: Clock = utc_now):
        self.storage = storage
        self.audit = audit
        self.clock = clock

    def proofs(self) -> list[RecordProof]:
        return [RecordProof.model_validate(p) for p in self.storage.load(PROOFS_KEY)]

    def verify(
        self,
        record: PatientRecord,
        simulate_tamper: bool = False,
        actor: Optional[Identity] = None,
    ) -> RecordProof:
        now = self.clock()
        payload = record_payload(record)
        record_hash = fingerprint(payload)
        ledger_hash = fingerprint(f"{payload}-tampered") if simulate_tamper else record_hash
        status = VerificationStatus.VERIFIED if record_hash == ledger_hash else VerificationStatus.TAMPERED
        proof = RecordProof(
            patient_id=record.id,
            patient_name=record.name,
            record_hash=record_hash,
            ledger_hash=ledger_hash,
            status=status,
            transaction_id=transaction_id(record.id, now),
            network=NETWORK,
            timestamp=now,
        )
        self.storage.save(
            PROOFS_KEY,
            [proof.model_dump(mode="json", by_alias=True)] + self.storage.load(PROOFS_KEY),
        )
        self.audit.record(actor, "Record verification", record.name, status)
        return proof
