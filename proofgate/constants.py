"""Shared constants for the ProofGate gate.

Defaults, wire names and header names used across modules are defined here.
No magic values in other modules — import from here.
"""

# ─── Service defaults ────────────────────────────────────────────────────────

# Canonical production endpoint of the validation service.
DEFAULT_API_URL: str = "https://www.proofgate.xyz/api"

# Base mainnet. Used when neither the config nor the call supplies a chain.
DEFAULT_CHAIN_ID: int = 8453

# Public evidence viewer; used when a verdict carries no evidence URI.
EVIDENCE_VIEWER_URL: str = "https://www.proofgate.xyz/evidence"

# Every ProofGate dashboard key starts with this prefix.
API_KEY_PREFIX: str = "pg_"

# Header carrying the credential on every outbound call.
API_KEY_HEADER: str = "X-API-Key"

# ─── Settings keys ───────────────────────────────────────────────────────────

ENV_API_KEY = "PROOFGATE_API_KEY"
ENV_API_URL = "PROOFGATE_API_URL"
ENV_GUARDRAIL_ID = "PROOFGATE_GUARDRAIL_ID"
ENV_CHAIN_ID = "PROOFGATE_CHAIN_ID"
ENV_AUTO_BLOCK = "PROOFGATE_AUTO_BLOCK"
ENV_DEBUG = "PROOFGATE_DEBUG"
ENV_CONFIG = "PROOFGATE_CONFIG"
ENV_HOST = "PROOFGATE_HOST"
ENV_PORT = "PROOFGATE_PORT"

GATE_SETTINGS_KEYS: tuple[str, ...] = (
    ENV_API_KEY,
    ENV_API_URL,
    ENV_GUARDRAIL_ID,
    ENV_CHAIN_ID,
    ENV_AUTO_BLOCK,
    ENV_DEBUG,
)

# ─── Outbound HTTP client ────────────────────────────────────────────────────

POOL_MAX_CONNECTIONS: int = 50
POOL_MAX_KEEPALIVE: int = 20
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds

# Upstream statuses that carry quota / upgrade guidance for the end user.
QUOTA_STATUS_CODES: frozenset[int] = frozenset({402, 429})

# ─── Inbound HTTP surface ────────────────────────────────────────────────────

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 4343

# slowapi limit for POST /v1/validate. Each call consumes upstream quota.
VALIDATE_RATE_LIMIT: str = "60/minute"

DECISION_HEADER: str = "X-ProofGate-Decision"
GATE_ID_HEADER: str = "X-ProofGate-Gate-ID"
