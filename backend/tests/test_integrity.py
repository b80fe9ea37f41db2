from conftest import T0, make_identity
from vitalguard.schemas.enums import Role, StatusLevel, VerificationStatus
from vitalguard.schemas.patient import PatientRecord
from vitalguard.services.fingerprint import fingerprint
from vitalguard.services.integrity_service import NETWORK, record_payload


def make_record(**overrides) -> PatientRecord:
    values = dict(
        id="abc123",
        display_id="PT-0001",
        name="John Doe",
        status_level=StatusLevel.STABLE,
        last_updated=T0,
    )
    values.update(overrides)
    return PatientRecord(**values)


class TestIntegrityService:
    def test_payload(self):
        assert record_payload(make_record()) == f"abc123-{T0.isoformat()}-STABLE"

    def test_verified(self, registry):
        admin = make_identity(Role.ADMIN, name="Ada")
        proof = registry.integrity.verify(make_record(), actor=admin)

        assert proof.status == VerificationStatus.VERIFIED
        assert proof.record_hash == proof.ledger_hash == fingerprint(record_payload(make_record()))
        assert proof.network == NETWORK
        assert proof.timestamp == T0

        entry = registry.audit.entries()[0]
        assert entry.action == "Record verification"
        assert entry.target == "John Doe"
        assert entry.verification_status == VerificationStatus.VERIFIED

    def test_simulated_tamper(self, registry):
        admin = make_identity(Role.ADMIN, name="Ada")
        proof = registry.integrity.verify(make_record(), simulate_tamper=True, actor=admin)
        assert proof.status == VerificationStatus.TAMPERED
        assert proof.record_hash != proof.ledger_hash
        assert registry.audit.entries()[0].verification_status == VerificationStatus.TAMPERED

    def test_status_change_changes_hash(self, registry):
        stable = registry.integrity.verify(make_record())
        critical = registry.integrity.verify(make_record(status_level=StatusLevel.CRITICAL))
        assert stable.record_hash != critical.record_hash

    def test_proofs_newest_first(self, registry, clock):
        registry.integrity.verify(make_record(name="First"))
        clock.advance(minutes=1)
        registry.integrity.verify(make_record(name="Second"))
        assert [p.patient_name for p in registry.integrity.proofs()] == ["Second", "First"]

    def test_no_actor_no_audit(self, registry):
        registry.integrity.verify(make_record())
        assert registry.audit.entries() == []
