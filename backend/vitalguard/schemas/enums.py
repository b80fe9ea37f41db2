"""
Enumerations shared by the API schemas, the services and the stored JSON.

Values are the upper-case client vocabulary. The backend's snake_case
vocabulary (``live_monitoring``, ``stable``...) is translated in
``vitalguard.adapters``.
"""

from enum import Enum


class Role(str, Enum):
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    PATIENT = "PATIENT"
    ADMIN = "ADMIN"


class ApprovalStatus(str, Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"


class Page(str, Enum):
    DASHBOARD = "DASHBOARD"
    PATIENTS = "PATIENTS"
    PATIENT_PANEL = "PATIENT_PANEL"
    CONSENT = "CONSENT"
    AUDIT_LOG = "AUDIT_LOG"
    INTEGRITY_VERIFY = "INTEGRITY_VERIFY"
    AI_INSIGHTS = "AI_INSIGHTS"
    INTEROPERABILITY = "INTEROPERABILITY"


class CareMode(str, Enum):
    MONITORED = "MONITORED"
    TASK_BASED = "TASK_BASED"


class StatusLevel(str, Enum):
    STABLE = "STABLE"
    ATTENTION = "ATTENTION"
    CRITICAL = "CRITICAL"


class GranteeType(str, Enum):
    HOSPITAL = "HOSPITAL"
    DOCTOR = "DOCTOR"


class ConsentDuration(str, Enum):
    HOURS_24 = "24H"
    DAYS_7 = "7D"
    PERMANENT = "PERMANENT"


class ConsentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


class VerificationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    TAMPERED = "TAMPERED"
