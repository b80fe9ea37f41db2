from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import ConsentDuration, ConsentStatus, GranteeType


class ConsentGrant(CamelModel):
    id: str
    patient_name: str
    grantee_type: GranteeType
    grantee_name: str
    duration: ConsentDuration
    created_at: datetime
    expires_at: Optional[datetime] = None
    status: ConsentStatus = ConsentStatus.ACTIVE
    fingerprint: str


class ConsentGrantRequest(BaseModel):
    grantee_type: GranteeType
    grantee_name: str
    duration: ConsentDuration

    @field_validator("grantee_name")
    @classmethod
    def replace_lone_surrogates(cls, v: str) -> str:
        # Lone UTF-16 surrogates survive JSON decoding but cannot be sent back as UTF-8.
        return v.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


class EligibilityResponse(CamelModel):
    patient_name: str
    grantee_name: str
    eligible: bool
