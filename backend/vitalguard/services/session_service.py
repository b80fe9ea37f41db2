"""
Per-identity navigation state.

Navigation is the only event that drives consent expiry. A denied navigation
changes nothing: no page switch, no sweep.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from vitalguard.schemas.enums import Page
from vitalguard.schemas.identity import Identity
from vitalguard.services.consent_service import ConsentLedger
from vitalguard.services.visibility import can_access_page, landing_page

logger = logging.getLogger(__name__)


@dataclass
class CareSession:
    uid: str
    active_page: Page
    selected_patient_id: Optional[str] = None

    def is_current(self, patient_id: str) -> bool:
        """False once the user has moved on from the patient a request was made for."""
        return self.selected_patient_id == patient_id


class SessionTracker:
    def __init__(self, consents: ConsentLedger):
        self.consents = consents
        self._sessions: dict[str, CareSession] = {}

    def open(self, identity: Identity) -> CareSession:
        session = CareSession(uid=identity.uid, active_page=landing_page(identity.role))
        self._sessions[identity.uid] = session
        return session

    def get(self, identity: Identity) -> CareSession:
        return self._sessions.get(identity.uid) or self.open(identity)

    def close(self, identity: Identity) -> None:
        self._sessions.pop(identity.uid, None)

    def navigate(self, identity: Identity, page) -> tuple[CareSession, int]:
        """
        Move to ``page`` if the role allows it. Returns the session and the
        number of consents expired by the sweep that follows a page change.
        """
        session = self.get(identity)
        if not can_access_page(identity.role, page):
            logger.debug("Blocked navigation of %s to %s", identity.uid, page)
            return session, 0
        session.active_page = Page(page)
        session.selected_patient_id = None
        expired = self.consents.sweep_expirations()
        return session, expired

    def select_patient(self, identity: Identity, patient_id: Optional[str]) -> CareSession:
        session = self.get(identity)
        session.selected_patient_id = patient_id
        return session
