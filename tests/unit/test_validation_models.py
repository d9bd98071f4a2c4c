"""Unit tests for proofgate/models: result parsing, safe derivation, Decision invariants."""

from __future__ import annotations

from typing import Any

import pytest

from proofgate.errors import ClientError, ClientErrorKind
from proofgate.models.decision import Decision, VerdictState
from proofgate.models.validation import (
    AgentInfo,
    Severity,
    ValidationResult,
    Verdict,
)


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "validationId": "val_1",
        "result": "PASS",
        "reason": "within limit",
        "evidenceUri": "ipfs://QmEvidence",
        "safe": True,
        "authenticated": True,
        "tier": "free",
    }
    payload.update(overrides)
    return payload


# ─── safe derivation ──────────────────────────────────────────────────────────


class TestSafeIsDerived:
    @pytest.mark.parametrize(
        "verdict,upstream_safe,expected",
        [
            ("PASS", True, True),
            ("PASS", False, True),
            ("FAIL", True, False),
            ("FAIL", False, False),
            ("PENDING", True, False),
        ],
    )
    def test_upstream_safe_flag_ignored(
        self, verdict: str, upstream_safe: bool, expected: bool
    ) -> None:
        result = ValidationResult.from_payload(_payload(result=verdict, safe=upstream_safe))
        assert result.safe is expected

    def test_safe_field_optional_on_wire(self) -> None:
        payload = _payload()
        del payload["safe"]
        assert ValidationResult.from_payload(payload).safe is True

    def test_to_dict_reports_local_safe(self) -> None:
        result = ValidationResult.from_payload(_payload(result="FAIL", safe=True))
        assert result.to_dict()["safe"] is False


# ─── Required fields ──────────────────────────────────────────────────────────


class TestResultParsing:
    @pytest.mark.parametrize(
        "field",
        ["validationId", "result", "reason", "evidenceUri", "authenticated", "tier"],
    )
    def test_missing_required_field(self, field: str) -> None:
        payload = _payload()
        del payload[field]
        with pytest.raises(ValueError, match=field):
            ValidationResult.from_payload(payload)

    def test_wrong_type(self) -> None:
        with pytest.raises(ValueError, match="authenticated"):
            ValidationResult.from_payload(_payload(authenticated="yes"))

    def test_unknown_verdict(self) -> None:
        with pytest.raises(ValueError, match="unknown verdict"):
            ValidationResult.from_payload(_payload(result="MAYBE"))

    def test_not_an_object(self) -> None:
        with pytest.raises(ValueError):
            ValidationResult.from_payload(["PASS"])

    def test_checks_parsed(self) -> None:
        result = ValidationResult.from_payload(
            _payload(
                result="FAIL",
                checks=[
                    {"name": "balance", "passed": True, "details": "ok", "severity": "info"},
                    {
                        "name": "approval",
                        "passed": False,
                        "details": "infinite approval",
                        "severity": "critical",
                    },
                ],
            )
        )
        assert len(result.checks) == 2
        assert result.failed_checks[0].name == "approval"
        assert result.failed_checks[0].severity is Severity.CRITICAL

    @pytest.mark.parametrize(
        "checks",
        [
            "not-a-list",
            [{"name": "x", "passed": "no", "details": "", "severity": "info"}],
            [{"name": "x", "passed": True, "details": "", "severity": "fatal"}],
            ["string entry"],
        ],
    )
    def test_malformed_checks(self, checks: Any) -> None:
        with pytest.raises(ValueError):
            ValidationResult.from_payload(_payload(checks=checks))

    def test_onchain_fields(self) -> None:
        result = ValidationResult.from_payload(
            _payload(onchainStatus="confirmed", onChainRecorded=True)
        )
        assert result.onchain_status == "confirmed"
        assert result.onchain_recorded is True

    def test_unknown_onchain_status_dropped(self) -> None:
        result = ValidationResult.from_payload(_payload(onchainStatus="exploded"))
        assert result.onchain_status is None
        assert result.result is Verdict.PASS


# ─── AgentInfo ────────────────────────────────────────────────────────────────


class TestAgentInfo:
    def test_parse(self) -> None:
        info = AgentInfo.from_payload(
            {
                "isRegistered": True,
                "verificationStatus": "verified",
                "trustScore": 87,
                "tier": "pro",
                "totalValidations": 120,
                "passedValidations": 118,
            }
        )
        assert info.trust_score == 87.0
        assert info.to_dict()["passedValidations"] == 118

    def test_missing_field(self) -> None:
        with pytest.raises(ValueError, match="trustScore"):
            AgentInfo.from_payload(
                {
                    "isRegistered": True,
                    "verificationStatus": "verified",
                    "tier": "pro",
                    "totalValidations": 1,
                    "passedValidations": 1,
                }
            )


# ─── Decision ─────────────────────────────────────────────────────────────────


class TestDecision:
    def test_requires_exactly_one_source(self) -> None:
        with pytest.raises(ValueError):
            Decision(allowed=False)
        result = ValidationResult.from_payload(_payload())
        error = ClientError(ClientErrorKind.TRANSPORT, "down")
        with pytest.raises(ValueError):
            Decision(allowed=False, result=result, error=error)

    def test_error_can_never_allow(self) -> None:
        with pytest.raises(ValueError):
            Decision(allowed=True, error=ClientError(ClientErrorKind.TRANSPORT, "down"))

    def test_bool_conversion(self) -> None:
        result = ValidationResult.from_payload(_payload())
        assert bool(Decision(allowed=True, result=result)) is True
        assert bool(Decision(allowed=False, result=result)) is False

    def test_state_and_override(self) -> None:
        failed = ValidationResult.from_payload(_payload(result="FAIL"))
        decision = Decision(allowed=True, result=failed)
        assert decision.state is VerdictState.RESOLVED
        assert decision.overridden is True
        assert decision.to_dict()["result"]["safe"] is False

    def test_error_to_dict(self) -> None:
        decision = Decision(
            allowed=False, error=ClientError(ClientErrorKind.UPSTREAM, "quota", 429)
        )
        body = decision.to_dict()
        assert body["state"] == "errored"
        assert body["error"] == {"type": "ClientError", "kind": "upstream", "message": "quota"}
