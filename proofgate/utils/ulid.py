"""ULID generation for gate correlation IDs.

Every ``validate_transaction`` call gets a fresh ULID (``gate_id``). It is bound
into the structured log context for the duration of the call and returned to
HTTP callers in the ``X-ProofGate-Gate-ID`` header, so a decision shown to a
user can be matched to its log records. The remote service assigns its own
``validationId``; the two are unrelated.

Uses the ``python-ulid`` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Returns:
        str: Crockford Base32 ULID, e.g. ``"01KJ0JRVHYA7KX32VPN5ZSCTMV"``.
    """
    return str(ULID())
