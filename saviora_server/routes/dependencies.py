"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from ..config import Settings, get_settings
from ..errors import AdmissionDenied
from ..services import ActorRuntime, get_actor_runtime


# The upstream gateway verifies the session and forwards only the resulting identity
def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> str:
    identity = (request.headers.get(settings.identity_header) or "").strip()
    if not identity:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return identity


async def require_admission(
    user: str = Depends(get_current_user),
    runtime: ActorRuntime = Depends(get_actor_runtime),
) -> str:
    decision = await runtime.hit(user)
    if not decision.allowed:
        raise AdmissionDenied(decision)
    return user


__all__ = ["get_current_user", "require_admission"]
