"""Consent-gated record sharing with external hospitals (simulation)."""

from datetime import datetime
from vitalguard.schemas.identity import Identity
from vitalguard.schemas.interop import InteropResult, ReferralRecord, ReferralReport
from vitalguard.schemas.patient import PatientRecord
from vitalguard.services.audit_service import AuditLog
from vitalguard.services.consent_service import ConsentLedger

REFERRAL_HOSPITALS = ("MetroCare External", "NorthCare Hospital")
REFERRAL_STATUSES = ("RECEIVED", "IN_REVIEW")


def build_referrals(patients: list[PatientRecord], now: datetime) -> list[ReferralRecord]:
    return [
        ReferralRecord(
            id=f"ref-{p.id}",
            patient_id=p.id,
            patient_uid=p.display_id,
            hospital=REFERRAL_HOSPITALS[i % 2],
            status=REFERRAL_STATUSES[i % 2],
            summary="Previous hospital shared history, labs and discharge note.",
            reports=[
                ReferralReport(title="CBC Lab", source="External Lab", date=now),
                ReferralReport(title="Discharge Summary", source="Previous Hospital", date=now),
            ],
        )
        for i, p in enumerate(patients)
    ]


def request_transfer(
    consents: ConsentLedger,
    audit: AuditLog,
    actor: Identity,
    patient: PatientRecord,
    hospital: str,
) -> InteropResult:
    eligible = consents.is_access_eligible(patient.name, hospital)
    target = f"{patient.name} -> {hospital}"
    if eligible:
        audit.record(actor, "Shared record with external hospital", target)
    else:
        audit.record(actor, "Interoperability denied (no consent)", target)
    return InteropResult(
        patient_id=patient.id,
        hospital=hospital,
        stage="granted" if eligible else "denied",
        consent_validated=eligible,
    )
