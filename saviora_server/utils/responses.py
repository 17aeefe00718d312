"""Response utilities."""

from typing import Optional

from fastapi.responses import JSONResponse

from ..errors import SavioraError


def error_response(message: str, *, status_code: int, detail: Optional[str] = None) -> JSONResponse:
    """Create a standardized error response."""
    payload = {"ok": False, "error": message}
    if detail:
        payload["message"] = detail
    return JSONResponse(payload, status_code=status_code)


def service_error_response(exc: SavioraError, *, status_code: int) -> JSONResponse:
    """Render a taxonomy error using its stable wire code."""
    return error_response(exc.code, status_code=status_code, detail=str(exc) or None)
