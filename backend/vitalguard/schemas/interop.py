from pydantic import BaseModel
from datetime import datetime
from vitalguard.schemas.base import CamelModel


class InteropRequest(BaseModel):
    patient_id: str
    hospital: str


class InteropResult(CamelModel):
    patient_id: str
    hospital: str
    stage: str  # "granted" | "denied"
    consent_validated: bool


class ReferralReport(CamelModel):
    title: str
    source: str
    date: datetime


class ReferralRecord(CamelModel):
    id: str
    patient_id: str
    patient_uid: str
    hospital: str
    status: str
    summary: str
    reports: list[ReferralReport] = []
