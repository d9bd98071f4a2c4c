"""Root test configuration for the ProofGate gate.

Clears every PROOFGATE_* variable for the whole suite so a developer's shell
settings can never leak into config tests, and resets the slowapi limiter so
HTTP tests do not trip the validate rate limit on each other.
"""

import pytest

from proofgate.constants import (
    ENV_CONFIG,
    ENV_HOST,
    ENV_PORT,
    GATE_SETTINGS_KEYS,
)


@pytest.fixture(autouse=True)
def clean_proofgate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PROOFGATE_* settings and disable config-file discovery."""
    for key in (*GATE_SETTINGS_KEYS, ENV_CONFIG, ENV_HOST, ENV_PORT):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("proofgate.config.DEFAULT_CONFIG_PATHS", [])


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Reset the in-memory rate limiter storage between tests."""
    from proofgate.limiter import limiter
    try:
        limiter._storage.reset()
    except Exception:
        pass  # Storage may not support reset in all backends
