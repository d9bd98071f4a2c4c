"""Validation pipeline: builder → client → verdict → formatter.

  - builder.py   — transaction fields → ValidationRequest (no network)
  - verdict.py   — outcome + auto-block policy → Decision
  - formatter.py — Decision → display text
  - core.py      — validate_transaction() and TransactionGate
"""

from proofgate.gate.core import GateReply, TransactionGate, validate_transaction

__all__ = ["GateReply", "TransactionGate", "validate_transaction"]
