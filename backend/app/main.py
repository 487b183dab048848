from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import error_response, router
from app.config import settings
from app.services.errors import InputError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DakStudio Rooftop Engine",
    description=(
        "Estimate rooftop-addition potential for Dutch buildings. "
        "Enter an address to get the BAG footprint, 3D BAG height, "
        "CBS neighbourhood density and housing / solar / green-roof yields."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return error_response(str(exc), 400)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
    return error_response("; ".join(messages) or "invalid request", 400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(str(exc) or type(exc).__name__, 500)


@app.get("/")
async def root():
    return {
        "name": "DakStudio Rooftop Engine",
        "version": "1.0.0",
        "endpoints": {
            "api_docs": "/docs",
            "health": "/health",
            "lookup": "GET /api/lookup?address=...",
            "benefits": "POST /api/benefits",
            "neighbourhood": "GET /api/geo/cbs?lat=...&lng=...",
            "building_attributes": "GET /api/geo/bag?lat=...&lng=...",
            "local_density": "GET /api/geo/bag/density?lat=...&lng=...",
        },
    }


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
