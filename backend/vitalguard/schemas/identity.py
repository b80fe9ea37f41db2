from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import ApprovalStatus, Role


class Identity(CamelModel):
    uid: str
    role: Role
    name: str
    email: str
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED
    assigned_patient_ids: list[str] = []
    status_message: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED


class SignupRequest(BaseModel):
    name: str
    email: str
    role: str


class LoginRequest(BaseModel):
    email: str
    role: str


class ApproveRequest(BaseModel):
    email: str
    role: str


class AssignRequest(BaseModel):
    patient_ids: list[str]


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    identity: Identity
