"""HTTP response builders for the gate's inbound API.

Two distinct shapes, never confused:

  build_decision_response():
      HTTP 200 for EVERY validation outcome, approved, blocked or errored.
      The decision travels in the body (``allowed``) and in the
      ``X-ProofGate-Decision: allow|block`` header. A blocked transaction is a
      successful gate call, not an HTTP failure.

  build_upstream_error_response():
      Passthrough lookups (agents, evidence) that could not be served.
      502 for transport failures and malformed upstream bodies; the upstream's
      own 4xx status (e.g. 404 unknown wallet, 429 quota) is kept.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from proofgate.constants import DECISION_HEADER, GATE_ID_HEADER
from proofgate.errors import ClientError, ClientErrorKind
from proofgate.gate.core import GateReply


def build_decision_response(reply: GateReply) -> JSONResponse:
    """HTTP 200 with the decision, its display message and the gate ID.

    Body:

    .. code-block:: json

        {
          "allowed": false,
          "message": "🚨 **Transaction Blocked** …",
          "gate_id": "<ulid>",
          "state": "resolved",
          "safe": false,
          "overridden": false,
          "result": {"validationId": "val_2", "result": "FAIL", …},
          "error": null
        }
    """
    content = {
        "allowed": reply.decision.allowed,
        "message": reply.message,
        "gate_id": reply.gate_id,
    }
    content.update(reply.decision.to_dict())
    response = JSONResponse(status_code=200, content=content)
    response.headers[DECISION_HEADER] = "allow" if reply.decision.allowed else "block"
    response.headers[GATE_ID_HEADER] = reply.gate_id
    return response


def build_upstream_error_response(error: ClientError) -> JSONResponse:
    """Map a ClientError from a passthrough lookup to an HTTP response."""
    status_code = 502
    if (
        error.kind is ClientErrorKind.UPSTREAM
        and error.status_code is not None
        and 400 <= error.status_code < 500
    ):
        status_code = error.status_code
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": error.message,
                "code": f"proofgate_{error.kind_name}",
                "upstream_status": error.status_code,
            }
        },
    )
