from pydantic import BaseModel
from datetime import datetime
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import VerificationStatus


class VerifyRequest(BaseModel):
    patient_id: str
    simulate_tamper: bool = False


class RecordProof(CamelModel):
    patient_id: str
    patient_name: str
    record_hash: str
    ledger_hash: str
    status: VerificationStatus
    transaction_id: str
    network: str
    timestamp: datetime
