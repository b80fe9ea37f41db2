from pydantic import BaseModel
from typing import Optional
from vitalguard.schemas.base import CamelModel
from vitalguard.schemas.enums import Page


class NavigateRequest(BaseModel):
    # Plain string so an unknown page is a blocked navigation, not a 422.
    page: str


class SessionState(CamelModel):
    uid: str
    active_page: Page
    selected_patient_id: Optional[str] = None
    allowed_pages: list[Page] = []
    expired_consents: int = 0
