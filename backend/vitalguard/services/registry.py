"""
Process-wide service objects, built once in the app lifespan and handed to
request handlers through ``app.state``.
"""

from dataclasses import dataclass
from fastapi import Request
from vitalguard.clock import Clock, utc_now
from vitalguard.config import Settings
from vitalguard.services.audit_service import AuditLog
from vitalguard.services.consent_service import ConsentLedger
from vitalguard.services.identity_service import IdentityStore
from vitalguard.services.integrity_service import IntegrityService
from vitalguard.services.llm_service import BedrockLLM
from vitalguard.services.session_service import SessionTracker
from vitalguard.services.summary_service import BedrockCareAI, CareAI, TemplateCareAI
from vitalguard.storage import KeyValueStorage, build_storage


@dataclass
class ServiceRegistry:
    settings: Settings
    storage: KeyValueStorage
    identities: IdentityStore
    audit: AuditLog
    consents: ConsentLedger
    integrity: IntegrityService
    sessions: SessionTracker
    ai: CareAI
    clock: Clock = utc_now


def build_ai(settings: Settings) -> CareAI:
    if settings.ai_provider.lower() == "bedrock":
        return BedrockCareAI(BedrockLLM(settings))
    return TemplateCareAI()


def build_registry(
    settings: Settings,
    storage: KeyValueStorage = None,
    clock: Clock = utc_now,
    ai: CareAI = None,
) -> ServiceRegistry:
    if storage is None:
        storage = build_storage(settings.storage_path)
    audit = AuditLog(storage, clock)
    consents = ConsentLedger(storage, audit, clock)
    return ServiceRegistry(
        settings=settings,
        storage=storage,
        identities=IdentityStore(storage, clock),
        audit=audit,
        consents=consents,
        integrity=IntegrityService(storage, audit, clock),
        sessions=SessionTracker(consents),
        ai=ai or build_ai(settings),
        clock=clock,
    )


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry
