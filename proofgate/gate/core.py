"""Gate orchestration: transaction fields → Decision.

``validate_transaction()`` is the only entry point for validation logic.

GATE INVARIANTS:
  - ALWAYS returns a ``Decision``. Build errors, client errors and unexpected
    exceptions are converted to a denial; none of them propagate.
  - At most one network attempt per call. A BuildError means zero.
  - No local state is mutated, so an abandoned (cancelled) call needs no
    rollback. ``asyncio.CancelledError`` is a BaseException and is never caught.

``TransactionGate`` bundles a resolved config with a client for hosts that
register the gate once at startup and call it per transaction intent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from proofgate.client.engine import ValidationClient
from proofgate.config import GateConfig, resolve_config
from proofgate.errors import GateError
from proofgate.gate.builder import build_request
from proofgate.gate.formatter import format_decision
from proofgate.gate.verdict import Outcome, evaluate
from proofgate.models.decision import Decision
from proofgate.utils.logger import bound_gate_id, get_logger
from proofgate.utils.ulid import generate_ulid

logger = get_logger(__name__)


async def _obtain_outcome(
    config: GateConfig,
    fields: Mapping[str, Any],
    client: ValidationClient,
) -> Outcome:
    try:
        request = build_request(fields, config)
        return await client.validate(request)
    except GateError as exc:
        return exc
    except Exception as exc:  # noqa: BLE001 (fail-closed boundary)
        logger.critical(
            "validation_crashed",
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )
        return GateError("internal", f"Unexpected validation failure: {type(exc).__name__}")


def _log_decision(decision: Decision) -> None:
    if decision.error is not None:
        logger.warning(
            "validation_failed",
            error_type=type(decision.error).__name__,
            kind=decision.error.kind_name,
            error=decision.error.message,
        )
        return

    result = decision.result
    context = {
        "validation_id": result.validation_id if result else None,
        "result": result.result.value if result else None,
        "reason": result.reason if result else None,
    }
    if decision.overridden:
        logger.warning("transaction_override", **context)
    elif decision.allowed:
        logger.info("transaction_allowed", **context)
    else:
        logger.info("transaction_blocked", **context)


async def validate_transaction(
    config: GateConfig,
    fields: Mapping[str, Any],
    client: ValidationClient,
    gate_id: Optional[str] = None,
) -> Decision:
    """Validate one transaction intent and return the final Decision.

    Args:
        config:  Resolved gate config (defaults + auto-block policy).
        fields:  Transaction fields as supplied by the host (see builder.py).
        client:  ValidationClient bound to the same config.
        gate_id: Correlation ID for log records; generated when omitted.

    Returns:
        Decision. Never raises for build/transport/upstream/parse failures.
    """
    with bound_gate_id(gate_id or generate_ulid()):
        outcome = await _obtain_outcome(config, fields, client)
        decision = evaluate(outcome, config.auto_block)
        _log_decision(decision)
        return decision


# ─── Host-facing wrapper ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class GateReply:
    """What the host shows and acts on: the decision plus its display text."""

    decision: Decision
    message: str
    gate_id: str

    def __bool__(self) -> bool:
        return self.decision.allowed


class TransactionGate:
    """Config + client, constructed once when the host initialises the gate.

    Usage::

        gate = TransactionGate.from_settings(os.environ)   # ConfigError is fatal here
        reply = await gate.check({"from": ..., "to": ..., "data": ...})
        if reply:
            send_transaction(...)
        callback(reply.message)
    """

    def __init__(
        self,
        config: GateConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.client = ValidationClient(config, http_client=http_client)

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any],
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "TransactionGate":
        """Resolve raw settings and build a gate.

        Raises:
            ConfigError: the settings are invalid (fatal; no call is possible).
        """
        return cls(resolve_config(settings), http_client=http_client)

    async def validate(self, fields: Mapping[str, Any]) -> Decision:
        return await validate_transaction(self.config, fields, self.client)

    async def check(self, fields: Mapping[str, Any]) -> GateReply:
        """Validate and render: the single operation exposed to hosts."""
        gate_id = generate_ulid()
        decision = await validate_transaction(
            self.config, fields, self.client, gate_id=gate_id
        )
        return GateReply(decision=decision, message=format_decision(decision), gate_id=gate_id)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "TransactionGate":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
