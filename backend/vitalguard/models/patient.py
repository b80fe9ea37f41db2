from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float, JSON
from vitalguard.clock import utc_now
from vitalguard.database import Base


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(32), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    age = Column(Integer)
    gender = Column(String(20))
    room = Column(String(50))
    condition = Column(String(500))
    diagnosis = Column(Text)
    care_mode = Column(String(20), default="live_monitoring")  # "live_monitoring" | "task_based"
    status = Column(String(20), default="stable")  # "stable" | "attention" | "critical"
    active = Column(Boolean, default=True, index=True)
    admission_time = Column(DateTime(timezone=True), default=utc_now)
    discharge_time = Column(DateTime(timezone=True))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class VitalsReading(Base):
    __tablename__ = "vitals"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(32), index=True, nullable=False)
    heart_rate = Column(Integer, nullable=False)
    systolic_bp = Column(Integer, nullable=False)
    diastolic_bp = Column(Integer, nullable=False)
    spo2 = Column(Integer, nullable=False)
    respiratory_rate = Column(Integer, nullable=False)
    temperature = Column(Float, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utc_now, index=True)


class AISummary(Base):
    __tablename__ = "ai_summaries"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(32), index=True, nullable=False)
    overview = Column(Text, nullable=False)
    key_points = Column(JSON, default=list)
    recent_changes = Column(JSON, default=list)
    recommendations = Column(JSON, default=list)
    generated_at = Column(DateTime(timezone=True), default=utc_now, index=True)


class DischargeReport(Base):
    __tablename__ = "discharge_reports"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String(32), index=True, nullable=False)
    report_data = Column(JSON, nullable=False)
    generated_at = Column(DateTime(timezone=True), default=utc_now, index=True)
