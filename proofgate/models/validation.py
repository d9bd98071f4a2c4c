"""Validation request/result contracts for the ProofGate service.

Wire format (``POST {endpoint}/validate``):

.. code-block:: json

    {"from": "0x…", "to": "0x…", "data": "0x…", "value": "0",
     "guardrailId": "…", "chainId": 8453}

Success response:

.. code-block:: json

    {"validationId": "val_1", "result": "PASS", "reason": "within limit",
     "evidenceUri": "ipfs://…", "safe": true, "authenticated": true,
     "tier": "free", "checks": [{"name": "…", "passed": true,
     "details": "…", "severity": "info"}]}

``safe`` on the wire is informational only. ``ValidationResult.safe`` is
derived from ``result`` so an inconsistent upstream (``safe: true`` with
``result: "FAIL"``) can never turn a failed verdict into an approval.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

# ─── Enums ────────────────────────────────────────────────────────────────────


class Verdict(str, Enum):
    """Classification returned by the validation service."""

    PASS = "PASS"
    FAIL = "FAIL"
    PENDING = "PENDING"


class Severity(str, Enum):
    """Severity of a named sub-check."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


# On-chain evidence publication states reported alongside a verdict.
ONCHAIN_STATUSES: frozenset[str] = frozenset(
    {"pending", "queued", "publishing", "confirmed", "failed"}
)

# Fields every success body must carry, with the JSON type each must have.
REQUIRED_RESULT_FIELDS: tuple[tuple[str, type], ...] = (
    ("validationId", str),
    ("result", str),
    ("reason", str),
    ("evidenceUri", str),
    ("authenticated", bool),
    ("tier", str),
)


# ─── Request ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ValidationRequest:
    """One transaction intent, fully defaulted and syntax-checked.

    Built only by ``proofgate.gate.builder.build_request``; ``chain_id`` is
    already resolved against the config default.
    """

    sender: str
    recipient: str
    data: str
    chain_id: int
    value: str = "0"
    guardrail_id: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Serialise to the JSON body of ``POST /validate``.

        ``guardrailId`` is omitted when unset so the service falls back to the
        account-level default guardrail.
        """
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": self.recipient,
            "data": self.data,
            "value": self.value,
            "chainId": self.chain_id,
        }
        if self.guardrail_id:
            payload["guardrailId"] = self.guardrail_id
        return payload


# ─── Result ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ValidationCheck:
    """Named sub-check reported by the policy engine."""

    name: str
    passed: bool
    details: str
    severity: Severity

    @classmethod
    def from_payload(cls, raw: Any) -> "ValidationCheck":
        if not isinstance(raw, Mapping):
            raise ValueError("check entry is not an object")
        name = raw.get("name")
        passed = raw.get("passed")
        details = raw.get("details", "")
        severity = raw.get("severity")
        if not isinstance(name, str) or not isinstance(passed, bool):
            raise ValueError("check entry needs a string 'name' and boolean 'passed'")
        if not isinstance(details, str):
            raise ValueError(f"check '{name}' has non-string 'details'")
        try:
            level = Severity(severity)
        except ValueError:
            raise ValueError(f"check '{name}' has unknown severity: {severity!r}") from None
        return cls(name=name, passed=passed, details=details, severity=level)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "details": self.details,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Verdict returned by the validation service for one request."""

    validation_id: str
    result: Verdict
    reason: str
    evidence_uri: str
    authenticated: bool
    tier: str
    checks: tuple[ValidationCheck, ...] = field(default_factory=tuple)
    onchain_status: Optional[str] = None
    onchain_recorded: Optional[bool] = None

    @property
    def safe(self) -> bool:
        """True iff the verdict is PASS. Never read from the wire."""
        return self.result is Verdict.PASS

    @property
    def failed_checks(self) -> tuple[ValidationCheck, ...]:
        return tuple(check for check in self.checks if not check.passed)

    @classmethod
    def from_payload(cls, payload: Any) -> "ValidationResult":
        """Parse a success body.

        Raises:
            ValueError: When the body is not an object, a required field is
                missing or has the wrong type, ``result`` is not a known
                verdict, or ``checks`` is malformed.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("response body is not a JSON object")

        missing = [name for name, _ in REQUIRED_RESULT_FIELDS if name not in payload]
        if missing:
            raise ValueError(f"response missing required fields: {', '.join(missing)}")
        for name, expected in REQUIRED_RESULT_FIELDS:
            if not isinstance(payload[name], expected):
                raise ValueError(
                    f"response field '{name}' must be {expected.__name__}, "
                    f"got {type(payload[name]).__name__}"
                )

        try:
            verdict = Verdict(payload["result"])
        except ValueError:
            raise ValueError(f"unknown verdict: {payload['result']!r}") from None

        raw_checks = payload.get("checks")
        if raw_checks is None:
            checks: tuple[ValidationCheck, ...] = ()
        elif isinstance(raw_checks, list):
            checks = tuple(ValidationCheck.from_payload(item) for item in raw_checks)
        else:
            raise ValueError("response field 'checks' must be a list")

        # Informational on-chain fields: unknown values are dropped, not fatal.
        onchain_status = payload.get("onchainStatus")
        if onchain_status not in ONCHAIN_STATUSES:
            onchain_status = None
        onchain_recorded = payload.get("onChainRecorded")
        if not isinstance(onchain_recorded, bool):
            onchain_recorded = None

        return cls(
            validation_id=payload["validationId"],
            result=verdict,
            reason=payload["reason"],
            evidence_uri=payload["evidenceUri"],
            authenticated=payload["authenticated"],
            tier=payload["tier"],
            checks=checks,
            onchain_status=onchain_status,
            onchain_recorded=onchain_recorded,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire-style dict with the locally derived ``safe`` flag."""
        body: dict[str, Any] = {
            "validationId": self.validation_id,
            "result": self.result.value,
            "reason": self.reason,
            "evidenceUri": self.evidence_uri,
            "safe": self.safe,
            "authenticated": self.authenticated,
            "tier": self.tier,
            "checks": [check.to_dict() for check in self.checks],
        }
        if self.onchain_status is not None:
            body["onchainStatus"] = self.onchain_status
        if self.onchain_recorded is not None:
            body["onChainRecorded"] = self.onchain_recorded
        return body


# ─── Agent lookup ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AgentInfo:
    """Trust/registration record returned by ``GET /agents/{wallet}``."""

    is_registered: bool
    verification_status: str
    trust_score: float
    tier: str
    total_validations: int
    passed_validations: int

    @classmethod
    def from_payload(cls, payload: Any) -> "AgentInfo":
        if not isinstance(payload, Mapping):
            raise ValueError("agent response is not a JSON object")
        try:
            is_registered = payload["isRegistered"]
            verification_status = payload["verificationStatus"]
            trust_score = payload["trustScore"]
            tier = payload["tier"]
            total = payload["totalValidations"]
            passed = payload["passedValidations"]
        except KeyError as exc:
            raise ValueError(f"agent response missing field: {exc.args[0]}") from None
        if not isinstance(is_registered, bool):
            raise ValueError("agent field 'isRegistered' must be bool")
        if isinstance(trust_score, bool) or not isinstance(trust_score, (int, float)):
            raise ValueError("agent field 'trustScore' must be a number")
        for name, value in (("totalValidations", total), ("passedValidations", passed)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"agent field '{name}' must be an integer")
        return cls(
            is_registered=is_registered,
            verification_status=str(verification_status),
            trust_score=float(trust_score),
            tier=str(tier),
            total_validations=total,
            passed_validations=passed,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "isRegistered": self.is_registered,
            "verificationStatus": self.verification_status,
            "trustScore": self.trust_score,
            "tier": self.tier,
            "totalValidations": self.total_validations,
            "passedValidations": self.passed_validations,
        }
