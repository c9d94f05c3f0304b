"""App module.

This module belongs to `ojt_export.web` in the ojt-report-export codebase.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ojt_export import __version__
from ojt_export.errors import InvalidInputError, ProcessingError
from ojt_export.settings import get_export_settings
from ojt_export.web.api.export_flow import router as export_router
from ojt_export.web.contracts import ErrorResponse, HealthResponse

settings = get_export_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Export service running on port %s", get_export_settings().port)
    yield
    logger.info("Export service shutting down")


app = FastAPI(title="OJT Report Export", version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidInputError)
async def on_invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.debug("[export] rejected request: %s", exc)
    return JSONResponse(status_code=400, content=ErrorResponse(error=str(exc)).model_dump(exclude_none=True))


@app.exception_handler(ProcessingError)
async def on_processing_error(request: Request, exc: ProcessingError) -> JSONResponse:
    body = ErrorResponse(error="Failed to generate document", details=str(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/health")
def health() -> dict:
    return HealthResponse().model_dump()


app.include_router(export_router)
