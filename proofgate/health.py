"""Health endpoint for the gate's HTTP surface.

GET /health — 503 while the lifespan is still starting, 200 afterwards.

Polled by container health probes and by agent hosts that wait for the
sidecar before registering it. The body reports the effective policy so an
operator can see at a glance whether auto-block is on.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from proofgate import __version__
from proofgate.config import GateConfig

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Primary health check.

    Response body (200):
        {
          "status": "ok",
          "version": "1.0.0",
          "endpoint": "https://www.proofgate.xyz/api",
          "chain_id": 8453,
          "auto_block": true,
          "guardrail_configured": false
        }

    Response body (503):
        {"status": "starting", "message": "ProofGate gate is starting up..."}
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "ProofGate gate is starting up...",
            },
        )

    config: GateConfig = request.app.state.config
    return {
        "status": "ok",
        "version": __version__,
        "endpoint": config.api_url,
        "chain_id": config.chain_id,
        "auto_block": config.auto_block,
        "guardrail_configured": config.guardrail_id is not None,
    }
