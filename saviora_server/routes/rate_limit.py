from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..errors import BadRequest
from ..logging_config import logger
from ..models import RateLimitRequest
from ..services import ActorRuntime, get_actor_runtime
from .dependencies import get_current_user

router = APIRouter(prefix="/rate-limit", tags=["rate-limit"])


@router.post("", response_class=JSONResponse, summary="Evaluate the caller's admission window")
# Forward the wire request to the caller's actor; the body is parsed by hand so bad input maps to bad_request
async def evaluate_rate_limit(
    request: Request,
    user: str = Depends(get_current_user),
    runtime: ActorRuntime = Depends(get_actor_runtime),
) -> JSONResponse:
    raw_body = await request.body()
    try:
        payload = RateLimitRequest.model_validate_json(raw_body or b"")
    except ValidationError as exc:
        logger.debug("invalid rate limit request", extra={"errors": exc.errors(include_url=False)})
        raise BadRequest("invalid json") from exc

    if payload.action == "increment_view":
        raise BadRequest("unknown action")

    decision = await runtime.evaluate(user, payload)
    return JSONResponse(decision.model_dump(by_alias=True))


__all__ = ["router"]
