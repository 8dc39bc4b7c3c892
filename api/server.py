"""
Agenda API Server - REST API for the task-pool agenda and availability views.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agenda import __version__, config
from agenda.errors import StoreError, ValidationError
from agenda.observability import CorrelationIdMiddleware, configure_logging, get_request_id
from api.agenda_router import router as agenda_router

logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="Task Pool Agenda API",
    description="Worker agendas, availability and booking conflicts",
    version=__version__,
)

# CORS middleware - configurable via CORS_ORIGINS env var
# Dev default: allow all origins; Production: set CORS_ORIGINS to comma-separated list
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(agenda_router)


@app.on_event("startup")
async def configure_logging_on_startup():
    configure_logging(config.LOG_LEVEL)
    logger.info("=== Agenda API startup (store: %s) ===", config.REST_URL)


# ==== Error mapping ====


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "error_code": "validation_error", "request_id": get_request_id()},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(
        "Store failure on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        extra={"table": exc.table, "http_status": exc.status_code},
    )
    return JSONResponse(
        status_code=502,
        content={
            "detail": str(exc),
            "error_code": type(exc).__name__,
            "upstream_status": exc.status_code,
            "request_id": get_request_id(),
        },
    )


@app.get("/api/health")
async def health():
    return {"status": "healthy", "version": __version__, "timestamp": datetime.now().isoformat()}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8420")))
