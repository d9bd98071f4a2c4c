"""FastAPI application factory + lifespan for the gate's HTTP surface.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /health router — delegated to proofgate/health.py
  - /        route  — service discovery root
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()           → app.state.config  (ConfigError → stderr + exit 1)
  2. create_http_client()    → app.state.http_client
  3. TransactionGate(...)    → app.state.gate
  4. app.state.ready = True

Shutdown sequence (reverse):
  app.state.ready = False → close shared HTTP client
"""

from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from proofgate import __version__
from proofgate.api import router as gate_router
from proofgate.client.engine import create_http_client
from proofgate.config import GateConfig, load_config
from proofgate.errors import ConfigError
from proofgate.gate.core import TransactionGate
from proofgate.health import router as health_router
from proofgate.limiter import limiter
from proofgate.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)

root_router = APIRouter(tags=["root"])


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: raises HTTP 503 if app.state.ready is not True."""
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "ProofGate gate is starting up...",
            },
        )


# ─── Root Endpoint ────────────────────────────────────────────────────────────


@root_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint — service identity / discovery."""
    return {
        "service": "ProofGate transaction gate",
        "version": __version__,
        "validate": "/v1/validate",
        "health": "/health",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the gate before accepting traffic; tear it down on shutdown."""
    logger.info("ProofGate gate starting up...")

    # ── Step 1: Load configuration ────────────────────────────────────────────
    # Config errors are fatal: the process exits non-zero before ready=True.
    try:
        config: GateConfig = load_config()
    except ConfigError as exc:
        print(f"CONFIG ERROR: {exc.message}", file=sys.stderr)
        raise SystemExit(1) from exc
    app.state.config = config

    # ── Step 2: Shared outbound client ────────────────────────────────────────
    http_client: httpx.AsyncClient = create_http_client()
    app.state.http_client = http_client

    # ── Step 3: Gate ──────────────────────────────────────────────────────────
    app.state.gate = TransactionGate(config, http_client=http_client)

    # ── Step 4: Mark as ready ─────────────────────────────────────────────────
    app.state.ready = True
    logger.info(
        "ProofGate gate ready",
        endpoint=config.api_url,
        chain_id=config.chain_id,
        auto_block=config.auto_block,
    )

    yield

    logger.info("ProofGate gate shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
        logger.info("HTTP client closed")
    except Exception as exc:
        logger.warning("HTTP client close error (non-fatal)", error=str(exc))

    logger.info("ProofGate gate shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the gate's FastAPI application.

    Call this function directly in tests to get an isolated app instance:
        app = create_app()

    The module-level `app` is created at import time for uvicorn:
        uvicorn proofgate.main:app --host 127.0.0.1 --port 4343
    """
    # Swagger/ReDoc only in local development.
    _debug = os.getenv("DEBUG", "false").lower() == "true"

    application = FastAPI(
        title="ProofGate Transaction Gate",
        description="Validates blockchain transactions with ProofGate before an agent sends them",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if _debug else None,
        redoc_url="/redoc" if _debug else None,
        openapi_url="/openapi.json" if _debug else None,
    )

    # /health must answer 503 for anything arriving before startup completes.
    application.state.ready = False

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(SlowAPIMiddleware)

    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(gate_router, dependencies=[Depends(require_ready)])

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=500, content={"error": "Internal server error"}
        )

    return application


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────

app = create_app()
