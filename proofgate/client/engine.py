"""Async HTTP client for the ProofGate validation service.

One ``ValidationClient.validate()`` call is exactly one outbound request:
no retries, no backoff, no coalescing of concurrent calls for the same
transaction. Retry policy belongs to the calling agent.

Failure mapping (every failure is a ``ClientError``; nothing else escapes):

  httpx.RequestError (ConnectError, TimeoutException, DecodingError,
                      TooManyRedirects, …)
  httpx.InvalidURL                       → ClientError(TRANSPORT)
  non-2xx status                         → ClientError(UPSTREAM) with the body's
                                           ``error`` / ``message`` text, or
                                           "HTTP <status>" if the body is unusable
  2xx with an unparsable or incomplete body → ClientError(MALFORMED_RESPONSE)

Quota / rate-limit responses (402, 429) are UPSTREAM errors whose message is
the service's own guidance text, passed through verbatim for the end user.

Timeouts: none are enforced here beyond the transport's. ``create_http_client``
uses the httpx default unless the caller supplies one.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from proofgate.config import GateConfig
from proofgate.constants import (
    API_KEY_HEADER,
    POOL_KEEPALIVE_EXPIRY,
    POOL_MAX_CONNECTIONS,
    POOL_MAX_KEEPALIVE,
    QUOTA_STATUS_CODES,
)
from proofgate.errors import ClientError, ClientErrorKind
from proofgate.models.validation import AgentInfo, ValidationRequest, ValidationResult
from proofgate.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)


# ─── httpx.AsyncClient factory ────────────────────────────────────────────────


def create_http_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient used for all service calls.

    Created once per gate (or once per app lifespan) and reused across
    concurrent validations. Never instantiated per request.

    Args:
        timeout: Total per-request timeout in seconds. ``None`` keeps the
                 httpx default (5 s).
    """
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = httpx.Timeout(timeout)
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        follow_redirects=False,
        **kwargs,
    )


# ─── Response helpers ─────────────────────────────────────────────────────────


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort error text from a non-2xx body; never raises.

    Accepts ``{"error": "…"}``, ``{"message": "…"}`` and the nested
    ``{"error": {"message": "…"}}`` form. Anything else → ``"HTTP <status>"``.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
            if isinstance(value, dict):
                nested = value.get("message")
                if isinstance(nested, str) and nested.strip():
                    return nested
    return f"HTTP {response.status_code}"


def _json_body(response: httpx.Response, what: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ClientError(
            ClientErrorKind.MALFORMED_RESPONSE,
            f"ProofGate returned an unreadable {what} response",
            status_code=response.status_code,
            detail=str(exc),
        ) from exc


# ─── Client ───────────────────────────────────────────────────────────────────


class ValidationClient:
    """Thin async client over ``httpx.AsyncClient``.

    Holds no per-call state; one instance can serve any number of concurrent
    validations. When ``http_client`` is not supplied the instance creates
    and owns one, closed by ``aclose()``.
    """

    def __init__(
        self,
        config: GateConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else create_http_client()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ValidationClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Transport ─────────────────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        return {
            API_KEY_HEADER: self.config.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        url = f"{self.config.api_url}/{path}"
        try:
            with PerformanceLogger(f"{method} /{path.split('/')[0]}", logger):
                response = await self._http.request(
                    method, url, json=json, headers=self._headers()
                )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            detail = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            logger.warning(
                "proofgate_unavailable",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise ClientError(
                ClientErrorKind.TRANSPORT,
                f"Could not reach ProofGate ({detail})",
                detail=detail,
            ) from exc

        if not response.is_success:
            message = _upstream_message(response)
            log_method = (
                logger.warning
                if response.status_code in QUOTA_STATUS_CODES
                else logger.info
            )
            log_method(
                "proofgate_upstream_error",
                url=url,
                status_code=response.status_code,
                message=message,
            )
            raise ClientError(
                ClientErrorKind.UPSTREAM,
                message,
                status_code=response.status_code,
            )
        return response

    # ── Operations ────────────────────────────────────────────────────────────

    async def validate(self, request: ValidationRequest) -> ValidationResult:
        """POST the request to ``/validate`` and parse the verdict.

        Raises:
            ClientError: TRANSPORT, UPSTREAM or MALFORMED_RESPONSE.
        """
        response = await self._send("POST", "validate", json=request.to_payload())
        body = _json_body(response, "validation")
        try:
            result = ValidationResult.from_payload(body)
        except ValueError as exc:
            logger.warning(
                "proofgate_malformed_response",
                status_code=response.status_code,
                error=str(exc),
            )
            raise ClientError(
                ClientErrorKind.MALFORMED_RESPONSE,
                f"ProofGate returned a malformed validation response: {exc}",
                status_code=response.status_code,
            ) from exc

        if isinstance(body, dict) and "safe" in body and body["safe"] is not result.safe:
            logger.warning(
                "proofgate_inconsistent_safe_flag",
                validation_id=result.validation_id,
                result=result.result.value,
                upstream_safe=body["safe"],
            )

        if self.config.debug:
            logger.info(
                "validation_result",
                validation_id=result.validation_id,
                result=result.result.value,
                reason=result.reason,
                safe=result.safe,
            )
        return result

    async def get_agent(self, wallet: str) -> AgentInfo:
        """Look up trust/registration info for an agent wallet.

        Read-only; has no influence on any validation decision.
        """
        response = await self._send("GET", f"agents/{quote(wallet, safe='')}")
        body = _json_body(response, "agent")
        try:
            return AgentInfo.from_payload(body)
        except ValueError as exc:
            raise ClientError(
                ClientErrorKind.MALFORMED_RESPONSE,
                f"ProofGate returned a malformed agent response: {exc}",
                status_code=response.status_code,
            ) from exc

    async def get_evidence(self, validation_id: str) -> Any:
        """Fetch the evidence payload for a validation, returned as parsed JSON."""
        response = await self._send("GET", f"evidence/{quote(validation_id, safe='')}")
        return _json_body(response, "evidence")
