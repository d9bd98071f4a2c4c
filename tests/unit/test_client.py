"""Unit tests for proofgate/client/engine.py against an httpx.MockTransport service.

Covers the failure mapping:
  - httpx.RequestError (ConnectError, ReadTimeout, DecodingError, …) → ClientError(TRANSPORT)
  - non-2xx → ClientError(UPSTREAM) with error / message text or "HTTP <status>"
  - 429 quota guidance passed through verbatim
  - 2xx with missing fields / invalid JSON → ClientError(MALFORMED_RESPONSE)
and the success path: request shape, headers, safe recomputation, debug logging,
agent and evidence lookups.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from structlog.testing import capture_logs

from proofgate.client.engine import ValidationClient, create_http_client
from proofgate.config import GateConfig
from proofgate.errors import ClientError, ClientErrorKind
from proofgate.models.validation import ValidationRequest, Verdict

pytestmark = pytest.mark.asyncio

API_URL = "https://proofgate.test/api"
CONFIG = GateConfig(api_key="pg_test_key", api_url=API_URL)

REQUEST = ValidationRequest(
    sender="0x" + "aa" * 20,
    recipient="0x" + "bb" * 20,
    data="0x38ed1739",
    chain_id=8453,
)

PASS_BODY: dict[str, Any] = {
    "validationId": "val_1",
    "result": "PASS",
    "reason": "within limit",
    "evidenceUri": "u1",
    "safe": True,
    "authenticated": True,
    "tier": "free",
}


# ─── Helpers ──────────────────────────────────────────────────────────────────


class _MockService:
    """In-process ProofGate stand-in that records requests."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        body: Any = None,
        raw: bytes | None = None,
        raise_on_send: Exception | None = None,
    ) -> None:
        self.received: list[httpx.Request] = []
        self._status_code = status_code
        self._body = PASS_BODY if body is None else body
        self._raw = raw
        self._raise_on_send = raise_on_send

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.received.append(request)
        if self._raise_on_send is not None:
            raise self._raise_on_send
        if self._raw is not None:
            return httpx.Response(self._status_code, content=self._raw)
        return httpx.Response(self._status_code, json=self._body)

    def client(self, config: GateConfig = CONFIG) -> ValidationClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return ValidationClient(config, http_client=http)


# ─── Success path ─────────────────────────────────────────────────────────────


class TestValidateSuccess:
    async def test_request_shape(self) -> None:
        service = _MockService()
        await service.client().validate(REQUEST)

        assert len(service.received) == 1
        sent = service.received[0]
        assert sent.method == "POST"
        assert str(sent.url) == f"{API_URL}/validate"
        assert sent.headers["X-API-Key"] == "pg_test_key"
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == REQUEST.to_payload()

    async def test_result_parsed(self) -> None:
        result = await _MockService().client().validate(REQUEST)
        assert result.validation_id == "val_1"
        assert result.result is Verdict.PASS
        assert result.safe is True

    async def test_hostile_safe_flag_recomputed(self) -> None:
        body = dict(PASS_BODY, result="FAIL", safe=True, reason="infinite approval")
        with capture_logs() as logs:
            result = await _MockService(body=body).client().validate(REQUEST)
        assert result.safe is False
        assert any(log["event"] == "proofgate_inconsistent_safe_flag" for log in logs)

    async def test_debug_log_record(self) -> None:
        config = GateConfig(api_key="pg_test_key", api_url=API_URL, debug=True)
        with capture_logs() as logs:
            result = await _MockService().client(config).validate(REQUEST)
        records = [log for log in logs if log["event"] == "validation_result"]
        assert records == [
            {
                "event": "validation_result",
                "log_level": "info",
                "validation_id": "val_1",
                "result": "PASS",
                "reason": "within limit",
                "safe": True,
            }
        ]
        assert result.safe is True

    async def test_no_debug_log_by_default(self) -> None:
        with capture_logs() as logs:
            await _MockService().client().validate(REQUEST)
        assert not [log for log in logs if log["event"] == "validation_result"]


# ─── Transport failures ───────────────────────────────────────────────────────


class TestTransportFailures:
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("Connection refused"),
            httpx.ReadTimeout("timed out"),
            httpx.RemoteProtocolError("peer closed connection"),
            httpx.DecodingError("invalid gzip stream"),
            httpx.TooManyRedirects("redirect loop"),
        ],
    )
    async def test_mapped_to_transport(self, exc: Exception) -> None:
        client = _MockService(raise_on_send=exc).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.TRANSPORT
        assert str(exc) in exc_info.value.message
        assert type(exc).__name__ in exc_info.value.message


# ─── Upstream status errors ───────────────────────────────────────────────────


class TestUpstreamErrors:
    async def test_error_field(self) -> None:
        client = _MockService(status_code=401, body={"error": "Invalid API key"}).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.UPSTREAM
        assert exc_info.value.message == "Invalid API key"
        assert exc_info.value.status_code == 401

    async def test_message_field(self) -> None:
        client = _MockService(status_code=500, body={"message": "policy engine down"}).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.message == "policy engine down"

    async def test_quota_message_verbatim(self) -> None:
        guidance = "Monthly validation limit reached (100/100). Upgrade at https://www.proofgate.xyz/pricing"
        client = _MockService(status_code=429, body={"error": guidance}).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.message == guidance
        assert exc_info.value.status_code == 429

    async def test_unparsable_error_body_falls_back_to_status(self) -> None:
        client = _MockService(status_code=503, raw=b"<html>Bad Gateway</html>").client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.UPSTREAM
        assert exc_info.value.message == "HTTP 503"

    async def test_error_body_without_known_fields(self) -> None:
        client = _MockService(status_code=400, body={"detail": "nope"}).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.message == "HTTP 400"


# ─── Malformed success bodies ─────────────────────────────────────────────────


class TestMalformedResponse:
    @pytest.mark.parametrize(
        "field",
        ["validationId", "result", "reason", "evidenceUri", "authenticated", "tier"],
    )
    async def test_missing_required_field(self, field: str) -> None:
        body = {k: v for k, v in PASS_BODY.items() if k != field}
        client = _MockService(body=body).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.MALFORMED_RESPONSE
        assert field in exc_info.value.message

    async def test_invalid_json(self) -> None:
        client = _MockService(raw=b"not json").client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.MALFORMED_RESPONSE

    async def test_legacy_evidence_uri_spelling_rejected(self) -> None:
        body = {k: v for k, v in PASS_BODY.items() if k != "evidenceUri"}
        body["evidenceURI"] = "ipfs://legacy"
        client = _MockService(body=body).client()
        with pytest.raises(ClientError) as exc_info:
            await client.validate(REQUEST)
        assert exc_info.value.kind is ClientErrorKind.MALFORMED_RESPONSE


# ─── Passthrough lookups ──────────────────────────────────────────────────────


class TestLookups:
    async def test_get_agent(self) -> None:
        body = {
            "isRegistered": True,
            "verificationStatus": "verified",
            "trustScore": 92.5,
            "tier": "pro",
            "totalValidations": 40,
            "passedValidations": 39,
        }
        service = _MockService(body=body)
        info = await service.client().get_agent("0x" + "cc" * 20)
        assert info.is_registered is True
        assert service.received[0].method == "GET"
        assert str(service.received[0].url) == f"{API_URL}/agents/0x{'cc' * 20}"

    async def test_get_agent_not_found(self) -> None:
        client = _MockService(status_code=404, body={"error": "Agent not found"}).client()
        with pytest.raises(ClientError) as exc_info:
            await client.get_agent("0xdead")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Agent not found"

    async def test_get_evidence_passthrough(self) -> None:
        evidence = {"validationId": "val_1", "trace": [1, 2, 3]}
        service = _MockService(body=evidence)
        assert await service.client().get_evidence("val_1") == evidence
        assert str(service.received[0].url) == f"{API_URL}/evidence/val_1"

    async def test_evidence_id_is_path_escaped(self) -> None:
        service = _MockService(body={})
        await service.client().get_evidence("../admin")
        assert service.received[0].url.raw_path.endswith(b"/evidence/..%2Fadmin")


# ─── Client lifecycle ─────────────────────────────────────────────────────────


async def test_owned_client_closed() -> None:
    client = ValidationClient(CONFIG)
    await client.aclose()
    assert client._http.is_closed


async def test_shared_client_left_open() -> None:
    http = create_http_client(timeout=2.0)
    async with ValidationClient(CONFIG, http_client=http):
        pass
    assert not http.is_closed
    await http.aclose()
