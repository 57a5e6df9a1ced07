from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.routes import router as routes_router
from src.adapters.api.controllers.stations import router as stations_router
from src.adapters.api.controllers.vehicles import router as vehicles_router
from src.adapters.api.schemas.common import ErrorSchema
from src.domain.exceptions import (
    AuthorizationDenied,
    NotFoundError,
    OracleUnavailable,
    PersistenceConflict,
    TrackingError,
    ValidationError,
)

app = FastAPI(title="BusTrack")
app.include_router(vehicles_router)
app.include_router(stations_router)
app.include_router(routes_router)

# Most specific first; anything else deriving from TrackingError is a 400.
_STATUS_BY_ERROR: tuple[tuple[type[TrackingError], int], ...] = (
    (ValidationError, 400),
    (AuthorizationDenied, 403),
    (NotFoundError, 404),
    (PersistenceConflict, 409),
    (OracleUnavailable, 503),
)


@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 400
    )
    if status_code >= 500:
        logging.getLogger("uvicorn.error").warning(
            "Dependency failure", extra={"path": str(request.url.path)}
        )
    body = ErrorSchema(error=str(exc) or exc.__class__.__name__)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so clients can display them.

    Starlette's default 500 handler may return plain text/HTML.
    """

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("BUSTRACK_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
