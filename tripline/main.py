"""FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tripline.api.routes.health import router as health_router
from tripline.api.routes.itineraries import router as itineraries_router
from tripline.api.routes.metrics import router as metrics_router
from tripline.errors import ErrorCode, StaleVersionError, TriplineError

logger = logging.getLogger(__name__)

app = FastAPI(title="Tripline API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itineraries_router)

# Cascade conflicts are a bad request for the caller to fix; only a stale
# version save is a 409.
STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WRITE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.READ_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: TriplineError) -> int:
    if isinstance(error, StaleVersionError):
        return status.HTTP_409_CONFLICT
    return STATUS_BY_CODE[error.code]


@app.exception_handler(TriplineError)
async def tripline_error_handler(request: Request, exc: TriplineError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("[%s %s] %s: %s", request.method, request.url.path, exc.code.value, exc)
    return JSONResponse(status_code=status_code, content={"error": jsonable_encoder(exc.to_dict())})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a VALIDATION_ERROR (400), not FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Request validation failed",
                "details": {"errors": jsonable_encoder(exc.errors())},
            }
        },
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tripline API", "version": "0.1.0"}
