"""Shared rate limiter for the gate's inbound API.

Uses slowapi (Starlette-compatible rate limiting). Every ``POST /v1/validate``
costs a unit of the account's ProofGate quota, so a runaway agent loop is cut
off here before it drains the quota.

The Limiter instance is created here and shared between:
  - proofgate/api.py   (route decorators)
  - proofgate/main.py  (app.state.limiter + SlowAPIMiddleware registration)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from proofgate.constants import VALIDATE_RATE_LIMIT

# Module-level limiter, imported by main.py and api.py
limiter = Limiter(key_func=get_remote_address)

__all__ = ["limiter", "VALIDATE_RATE_LIMIT"]
