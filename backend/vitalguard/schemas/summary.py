from datetime import datetime
from typing import Optional
from vitalguard.schemas.base import CamelModel


class PatientSummary(CamelModel):
    overview: str
    key_points: list[str] = []
    recent_changes: list[str] = []
    recommendations: list[str] = []


class SummaryResponse(CamelModel):
    patient_id: str
    summary: PatientSummary
    generated_at: Optional[datetime] = None
    stale: bool = False
