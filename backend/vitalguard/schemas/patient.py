from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import CareMode, StatusLevel


class VitalsSample(CamelModel):
    timestamp: datetime
    heart_rate: int
    systolic_bp: int = Field(alias="systolicBP")
    diastolic_bp: int = Field(alias="diastolicBP")
    spo2: int = Field(alias="spO2")
    resp_rate: int
    temperature: float


class PatientRecord(CamelModel):
    id: str
    display_id: str
    name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    room_id: Optional[str] = None
    condition: Optional[str] = None
    diagnosis: Optional[str] = None
    care_mode: CareMode = CareMode.TASK_BASED
    status_level: StatusLevel = StatusLevel.STABLE
    vitals_history: list[VitalsSample] = []
    last_updated: Optional[datetime] = None
    active: bool = True
    admission_time: Optional[datetime] = None
    discharge_time: Optional[datetime] = None
    notes: Optional[str] = None


# Request bodies use the backend's snake_case vocabulary.

class PatientCreate(BaseModel):
    name: str
    age: int
    gender: str
    room: str
    condition: str
    diagnosis: Optional[str] = None
    care_mode: str = "live_monitoring"
    notes: Optional[str] = None


class PatientUpdate(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    room: Optional[str] = None
    condition: Optional[str] = None
    diagnosis: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class VitalsCreate(BaseModel):
    heart_rate: int
    systolic_bp: int
    diastolic_bp: int
    spo2: int
    temperature: float
    respiratory_rate: int


class PatientListResponse(CamelModel):
    patients: list[PatientRecord]
    total: int


class VitalsAnalysis(CamelModel):
    risk_level: StatusLevel
    analysis: str
    recommendation: str


class VitalsSubmitResponse(CamelModel):
    sample: VitalsSample
    analysis: VitalsAnalysis
    patient: PatientRecord


class PatientInsights(CamelModel):
    patient_id: str
    status_level: StatusLevel
    risk_percent: int
    abnormal_flags: list[str] = []
    latest_vitals: Optional[VitalsSample] = None
