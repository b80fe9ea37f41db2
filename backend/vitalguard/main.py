import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from vitalguard.config import get_settings
from vitalguard.database import engine, Base
from vitalguard.exceptions import UnknownPatientError
from vitalguard.routers import audit, consents, dashboard, integrity, interop, patients, session
from vitalguard.routers import auth as auth_router
from vitalguard.services.registry import build_registry

import vitalguard.models  # noqa: F401  registers the tables on Base.metadata

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Startup: create tables, then the in-process services
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_registry(settings)
    logger.info("VitalGuard started (ai_provider=%s)", settings.ai_provider)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="VitalGuard Care Platform",
    description="Patient monitoring with consent, audit and record integrity",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Patient data must never be served from a browser cache."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)


@app.exception_handler(UnknownPatientError)
async def unknown_patient_handler(request: Request, exc: UnknownPatientError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(session.router, prefix="/api/session", tags=["Session"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
app.include_router(consents.router, prefix="/api/consents", tags=["Consents"])
app.include_router(audit.router, prefix="/api/audit", tags=["Audit"])
app.include_router(integrity.router, prefix="/api/integrity", tags=["Integrity"])
app.include_router(interop.router, prefix="/api/interop", tags=["Interoperability"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "vitalguard"}
