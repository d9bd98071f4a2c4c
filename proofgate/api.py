"""Inbound HTTP API: the gate as a sidecar for non-Python agent hosts.

Routes:
  POST /v1/validate                   — validate a transaction (always 200)
  GET  /v1/agents/{wallet}            — agent trust/registration passthrough
  GET  /v1/evidence/{validation_id}   — evidence payload passthrough

The router is registered behind ``require_ready`` in ``create_app()``; no
handler runs before the lifespan has built the gate.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from proofgate.errors import ClientError
from proofgate.gate.core import TransactionGate
from proofgate.limiter import VALIDATE_RATE_LIMIT, limiter
from proofgate.models.responses import (
    build_decision_response,
    build_upstream_error_response,
)
from proofgate.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["gate"])


async def _read_fields(request: Request) -> dict[str, Any]:
    """Request body as a mapping. Anything else → empty fields.

    An empty mapping fails the builder's completeness check, so a garbage body
    yields a normal "details required" denial instead of a 422.
    """
    try:
        body = await request.json()
    except ValueError:
        logger.info("validate_body_not_json")
        return {}
    return body if isinstance(body, dict) else {}


@router.post("/validate")
@limiter.limit(VALIDATE_RATE_LIMIT)
async def validate(request: Request) -> JSONResponse:
    """Validate one transaction intent.

    Body: ``{"from", "to", "data", "value"?, "chainId"?, "guardrailId"?}``.
    Returns HTTP 200 with the decision; see ``build_decision_response``.
    """
    gate: TransactionGate = request.app.state.gate
    fields = await _read_fields(request)
    reply = await gate.check(fields)
    return build_decision_response(reply)


@router.get("/agents/{wallet}")
async def get_agent(request: Request, wallet: str) -> JSONResponse:
    gate: TransactionGate = request.app.state.gate
    try:
        info = await gate.client.get_agent(wallet)
    except ClientError as exc:
        return build_upstream_error_response(exc)
    return JSONResponse(status_code=200, content=info.to_dict())


@router.get("/evidence/{validation_id}")
async def get_evidence(request: Request, validation_id: str) -> JSONResponse:
    gate: TransactionGate = request.app.state.gate
    try:
        evidence = await gate.client.get_evidence(validation_id)
    except ClientError as exc:
        return build_upstream_error_response(exc)
    return JSONResponse(status_code=200, content=evidence)
