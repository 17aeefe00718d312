from __future__ import annotations

import json

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import AdmissionDenied, BadRequest, StorageFailure, UpstreamFailure
from .logging_config import configure_logging, logger
from .routes import api_router
from .services import get_alarm_scheduler
from .utils import service_error_response


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error", extra={"errors": exc.errors(), "path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Invalid request", "detail": json.loads(json.dumps(exc.errors(), default=str))},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": str(request.url)},
        )
        detail = exc.detail
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return JSONResponse({"ok": False, "error": detail}, status_code=exc.status_code)

    @app.exception_handler(BadRequest)
    async def _bad_request_handler(request: Request, exc: BadRequest):
        logger.debug("bad request", extra={"error": str(exc), "path": str(request.url)})
        return service_error_response(exc, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(AdmissionDenied)
    async def _admission_denied_handler(request: Request, exc: AdmissionDenied):
        decision = exc.decision.model_dump(by_alias=True)
        logger.info("admission denied", extra={"path": str(request.url), "count": decision["count"]})
        return JSONResponse(
            {"ok": False, "error": exc.code, **decision},
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    @app.exception_handler(StorageFailure)
    async def _storage_failure_handler(request: Request, exc: StorageFailure):
        logger.error("storage failure", extra={"error": str(exc), "path": str(request.url)})
        return service_error_response(exc, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    @app.exception_handler(UpstreamFailure)
    async def _upstream_failure_handler(request: Request, exc: UpstreamFailure):
        logger.error("upstream failure", extra={"error": str(exc), "path": str(request.url)})
        return service_error_response(exc, status_code=status.HTTP_502_BAD_GATEWAY)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


configure_logging()
_settings = get_settings()

app = FastAPI(
    title=_settings.app_name,
    version=_settings.app_version,
    docs_url=_settings.resolved_docs_url,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)


@app.on_event("startup")
# Start delivering self-scheduled actor wake-ups when the app starts
async def _start_alarm_scheduler() -> None:
    scheduler = get_alarm_scheduler()
    await scheduler.start()


@app.on_event("shutdown")
# Stop the alarm scheduler when the app stops
async def _stop_alarm_scheduler() -> None:
    scheduler = get_alarm_scheduler()
    await scheduler.stop()


__all__ = ["app"]
