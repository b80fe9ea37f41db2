"""
Auth module: JWT creation/validation and the get_current_user FastAPI dependency.

Tokens carry only the identity uid. Role and assignments are read from the
identity store on every request, so approvals and re-assignments apply
without re-login.
"""

import time
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request
from vitalguard.schemas.enums import Role
from vitalguard.schemas.identity import Identity
from vitalguard.services.registry import ServiceRegistry, get_registry

ALGORITHM = "HS256"


def create_token(identity: Identity, registry: ServiceRegistry) -> str:
    """Create a signed JWT for an approved identity."""
    settings = registry.settings
    payload = {
        "sub": identity.uid,
        "role": identity.role.value,
        "exp": int(time.time()) + settings.token_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str, registry: ServiceRegistry) -> Optional[str]:
    """Decode and validate a JWT. Returns the uid, or None if invalid/expired."""
    try:
        payload = jwt.decode(token, registry.settings.jwt_secret_key, algorithms=[ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None


async def get_current_user(
    request: Request,
    registry: ServiceRegistry = Depends(get_registry),
) -> Identity:
    """
    FastAPI dependency. Extracts the JWT from the Authorization header and
    resolves it against the identity store. Missing, invalid or unknown
    tokens and unapproved identities get a 401.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    uid = decode_token(auth_header[7:], registry)
    identity = registry.identities.get(uid) if uid else None
    if identity is None or not identity.is_approved:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return identity


def require_roles(*roles: Role):
    """Dependency factory: 403 unless the current identity holds one of ``roles``."""

    async def checker(current_user: Identity = Depends(get_current_user)) -> Identity:
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Your role does not permit this action")
        return current_user

    return checker
