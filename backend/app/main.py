"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize application services (logging, config, database tables).
- Register API routers.
- Define root-level health/status endpoints.
- Provide `app` object used by ASGI server (uvicorn / hypercorn).

This file should stay clean: no business logic here.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import exports, models
from app.core.config import settings
from app.core.database import init_db
from app.core.logging import configure_logging

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging()  # Set logging defaults at startup


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.CREATE_TABLES_ON_STARTUP:
        init_db()
    yield


app = FastAPI(
    title="Financial Model Recalculation Backend",
    description="Projects three-statement financials and valuations from sparse revenue inputs",
    version="0.1.0",
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# CORS (useful for local frontend development)
# -----------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

app.include_router(models.router, prefix="/api/v1")
app.include_router(exports.router, prefix="/api/v1")

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "Recalculation backend running"}
