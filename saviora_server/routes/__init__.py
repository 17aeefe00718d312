from __future__ import annotations

from fastapi import APIRouter

from .dreams import router as dreams_router
from .interpret import router as interpret_router
from .meta import router as meta_router
from .rate_limit import router as rate_limit_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(meta_router)
api_router.include_router(rate_limit_router)
api_router.include_router(dreams_router)
api_router.include_router(interpret_router)

__all__ = ["api_router"]
