"""
Visibility scoping: which patient records and which pages an identity may open.

Both rules are pure functions. Anything unrecognized (no identity, unknown role,
unknown page) falls through to the most restrictive answer.
"""

from typing import Optional, Sequence, TypeVar
from vitalguard.schemas.enums import Page, Role
from vitalguard.schemas.identity import Identity

T = TypeVar("T")

PATIENT_PAGES = frozenset({Page.PATIENT_PANEL, Page.CONSENT})

PAGE_ROLES: dict[Page, frozenset] = {
    Page.DASHBOARD: frozenset({Role.ADMIN, Role.DOCTOR, Role.NURSE}),
    Page.PATIENTS: frozenset({Role.ADMIN, Role.DOCTOR, Role.NURSE}),
    Page.AI_INSIGHTS: frozenset({Role.ADMIN, Role.DOCTOR, Role.NURSE}),
    Page.PATIENT_PANEL: frozenset({Role.PATIENT}),
    Page.CONSENT: frozenset({Role.PATIENT}),
    Page.AUDIT_LOG: frozenset({Role.ADMIN}),
    Page.INTEROPERABILITY: frozenset({Role.ADMIN}),
    Page.INTEGRITY_VERIFY: frozenset({Role.ADMIN, Role.DOCTOR}),
}


def _parse_role(role) -> Optional[Role]:
    try:
        return Role(role)
    except ValueError:
        return None


def _role_of(identity) -> Optional[Role]:
    return _parse_role(getattr(identity, "role", None))


def _page_of(page) -> Optional[Page]:
    try:
        return Page(page)
    except ValueError:
        return None


def scope_patients(identity: Optional[Identity], patients: Sequence[T]) -> list[T]:
    """
    Filter the directory down to what ``identity`` may see, preserving order.

    Patients without assignments fall back to the first record of the
    directory (single-patient demo default). Staff without assignments see
    nothing.
    """
    role = _role_of(identity)
    if role is None:
        return []
    if role == Role.ADMIN:
        return list(patients)

    assigned = set(identity.assigned_patient_ids or [])
    if role == Role.PATIENT:
        if assigned:
            return [p for p in patients if p.id in assigned]
        return list(patients[:1])
    if role in (Role.DOCTOR, Role.NURSE):
        return [p for p in patients if p.id in assigned]
    return []


def can_view_patient(identity: Optional[Identity], patient_id: str, patients: Sequence) -> bool:
    return any(p.id == patient_id for p in scope_patients(identity, patients))


def can_access_page(role, page) -> bool:
    parsed_role = _parse_role(role)
    parsed_page = _page_of(page)
    if parsed_role is None or parsed_page is None:
        return False
    if parsed_role == Role.PATIENT:
        return parsed_page in PATIENT_PAGES
    return parsed_role in PAGE_ROLES[parsed_page]


def allowed_pages(role) -> list[Page]:
    return [page for page in Page if can_access_page(role, page)]


def landing_page(role) -> Page:
    return Page.PATIENT_PANEL if _parse_role(role) == Role.PATIENT else Page.DASHBOARD
