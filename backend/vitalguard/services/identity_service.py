"""
Identity & role store.

Maps an (email, role) pair to an approval state and a list of assigned patient
ids. Validation failures are returned as messages, never raised, so the API
layer can surface them inline.
"""

import logging
from typing import Optional
from vitalguard.clock import Clock, utc_now
from vitalguard.schemas.enums import ApprovalStatus, Role
from vitalguard.schemas.identity import Identity
from vitalguard.storage import KeyValueStorage, USERS_KEY

logger = logging.getLogger(__name__)

ROLE_PREFIX = {
    Role.ADMIN: "ADM",
    Role.DOCTOR: "DOC",
    Role.NURSE: "NRS",
    Role.PATIENT: "PAT",
}

REQUIRES_APPROVAL = (Role.DOCTOR, Role.NURSE)


def parse_role(value) -> Optional[Role]:
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityStore:
    def __init__(self, storage: KeyValueStorage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def all(self) -> list[Identity]:
        return [Identity.model_validate(u) for u in self.storage.load(USERS_KEY)]

    def _save(self, identities: list[Identity]) -> None:
        self.storage.save(
            USERS_KEY, [u.model_dump(mode="json", by_alias=True) for u in identities]
        )

    def get(self, uid: str) -> Optional[Identity]:
        return next((u for u in self.all() if u.uid == uid), None)

    def find(self, email: str, role: Role) -> Optional[Identity]:
        normalized = normalize_email(email)
        return next(
            (u for u in self.all() if u.email.lower() == normalized and u.role == role),
            None,
        )

    def _next_uid(self, role: Role, identities: list[Identity]) -> str:
        count = sum(1 for u in identities if u.role == role) + 1
        return f"{ROLE_PREFIX[role]}-{str(count).zfill(4)}"

    def signup(self, name: str, email: str, role) -> tuple[Optional[Identity], Optional[str]]:
        parsed = parse_role(role)
        if parsed is None:
            return None, f"Unknown role: {role}"
        name = (name or "").strip()
        normalized = normalize_email(email or "")
        if not name or "@" not in normalized:
            return None, "Name and a valid email are required."

        identities = self.all()
        if any(u.email.lower() == normalized and u.role == parsed for u in identities):
            return None, "Account already exists. Use Login."

        pending = parsed in REQUIRES_APPROVAL
        identity = Identity(
            uid=self._next_uid(parsed, identities),
            role=parsed,
            name=name,
            email=normalized,
            approval_status=ApprovalStatus.PENDING if pending else ApprovalStatus.APPROVED,
            assigned_patient_ids=[],
            status_message="Awaiting admin approval" if pending else "Active",
            created_at=self.clock(),
        )
        # Newest first
        self._save([identity] + identities)
        logger.info("Signed up %s as %s (%s)", identity.uid, parsed.value, identity.approval_status.value)
        return identity, None

    def login(self, email: str, role) -> tuple[Optional[Identity], Optional[str]]:
        parsed = parse_role(role)
        found = self.find(email or "", parsed) if parsed else None
        if not found:
            return None, "No account found. Please Sign Up first."
        if found.approval_status == ApprovalStatus.PENDING:
            return None, "Your account is pending admin approval."
        return found, None

    def approve(self, email: str, role) -> Optional[Identity]:
        parsed = parse_role(role)
        normalized = normalize_email(email)
        approved = None
        updated = []
        for u in self.all():
            if u.email.lower() == normalized and u.role == parsed:
                u = u.model_copy(update={
                    "approval_status": ApprovalStatus.APPROVED,
                    "status_message": "Approved",
                })
                approved = u
            updated.append(u)
        if approved:
            self._save(updated)
            logger.info("Approved %s", approved.uid)
        return approved

    def assign(self, uid: str, patient_ids: list[str]) -> Optional[Identity]:
        assigned = None
        updated = []
        for u in self.all():
            if u.uid == uid:
                message = f"Assigned {len(patient_ids)} patient(s)" if patient_ids else u.status_message
                u = u.model_copy(update={
                    "assigned_patient_ids": list(patient_ids),
                    "status_message": message,
                })
                assigned = u
            updated.append(u)
        if assigned:
            self._save(updated)
        return assigned

    def sync_assignments(self, patient_ids: list[str]) -> bool:
        """
        Round-robin fallback: give every approved staff member and every patient
        identity without assignments one patient from the directory.

        Demo convenience only. It silently grants access and is not an access
        control rule; disable with AUTO_ASSIGN_PATIENTS=false.
        """
        if not patient_ids:
            return False
        identities = self.all()
        staff = [u for u in identities if u.role in REQUIRES_APPROVAL and u.is_approved]
        patients = [u for u in identities if u.role == Role.PATIENT]

        changed = False
        for group in (staff, patients):
            for idx, u in enumerate(group):
                if not u.assigned_patient_ids:
                    self.assign(u.uid, [patient_ids[idx % len(patient_ids)]])
                    changed = True
        if changed:
            logger.info("Auto-assigned patients to unassigned identities")
        return changed
