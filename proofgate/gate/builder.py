"""Request builder — transaction fields → ValidationRequest.

Runs before any network access. A request the service cannot usefully
validate (missing or malformed sender, recipient or call data) is rejected
here so it never costs a round trip or a unit of quota.

Field names accepted from the host (the host's options mapping is passed as-is):

  from, to, data          — required
  value                   — optional, decimal string or int, default "0"
  chainId | chain_id      — optional, overrides GateConfig.chain_id
  guardrailId | guardrail_id — optional, overrides GateConfig.guardrail_id
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from proofgate.config import GateConfig, parse_positive_int
from proofgate.errors import BuildError, BuildErrorKind
from proofgate.models.validation import ValidationRequest

REQUIRED_FIELDS: tuple[str, ...] = ("from", "to", "data")

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
# "0x" alone is a plain value transfer with no call data.
CALLDATA_RE = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")
VALUE_RE = re.compile(r"^[0-9]+$")

INCOMPLETE_MESSAGE = "Transaction details required (from, to, data) for ProofGate validation."


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first_present(fields: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = fields.get(name)
        if not _is_missing(value):
            return value
    return None


def _normalise_value(raw: Any) -> Optional[str]:
    if _is_missing(raw):
        return "0"
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return str(raw) if raw >= 0 else None
    if isinstance(raw, str) and VALUE_RE.match(raw.strip()):
        return raw.strip()
    return None


def build_request(fields: Mapping[str, Any], config: GateConfig) -> ValidationRequest:
    """Assemble a ValidationRequest, applying config defaults.

    Caller-supplied values are never rewritten beyond defaulting and trimming
    surrounding whitespace.

    Raises:
        BuildError(INCOMPLETE_TRANSACTION): from, to or data is absent/empty.
        BuildError(MALFORMED_TRANSACTION): a present field has invalid syntax.
    """
    missing = tuple(name for name in REQUIRED_FIELDS if _is_missing(fields.get(name)))
    if missing:
        raise BuildError(
            BuildErrorKind.INCOMPLETE_TRANSACTION,
            f"{INCOMPLETE_MESSAGE} Missing: {', '.join(missing)}.",
            fields=missing,
        )

    sender = str(fields["from"]).strip()
    recipient = str(fields["to"]).strip()
    data = str(fields["data"]).strip()

    malformed: list[str] = []
    if not ADDRESS_RE.match(sender):
        malformed.append("from")
    if not ADDRESS_RE.match(recipient):
        malformed.append("to")
    if not CALLDATA_RE.match(data):
        malformed.append("data")

    value = _normalise_value(fields.get("value"))
    if value is None:
        malformed.append("value")

    raw_chain = _first_present(fields, "chainId", "chain_id")
    if raw_chain is None:
        chain_id: Optional[int] = config.chain_id
    else:
        chain_id = parse_positive_int(raw_chain)
        if chain_id is None:
            malformed.append("chainId")

    if malformed:
        raise BuildError(
            BuildErrorKind.MALFORMED_TRANSACTION,
            f"Malformed transaction fields: {', '.join(malformed)}. "
            "Addresses must be 0x + 40 hex characters, data 0x-prefixed hex, "
            "value a non-negative integer in wei.",
            fields=tuple(malformed),
        )

    guardrail = _first_present(fields, "guardrailId", "guardrail_id")
    guardrail_id = str(guardrail).strip() if guardrail is not None else config.guardrail_id

    return ValidationRequest(
        sender=sender,
        recipient=recipient,
        data=data,
        value=value,
        chain_id=chain_id,
        guardrail_id=guardrail_id,
    )
