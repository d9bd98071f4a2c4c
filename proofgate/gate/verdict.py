"""Verdict evaluation — one obtained outcome → final Decision.

Pure classification; no I/O, no retries. The outcome is either the verdict
(``ValidationResult``) or the ``GateError`` that prevented one.

  Resolved(PASS)     → allowed (regardless of auto-block)
  Resolved(FAIL)     → allowed = not auto_block
  Resolved(PENDING)  → allowed = not auto_block   (pending is not a pass)
  Errored(any error) → denied (auto-block does not apply: there is no verdict
                       to opt out of trusting)
"""

from __future__ import annotations

from typing import Union

from proofgate.errors import GateError
from proofgate.models.decision import Decision
from proofgate.models.validation import ValidationResult, Verdict

Outcome = Union[ValidationResult, GateError]


def evaluate(outcome: Outcome, auto_block: bool) -> Decision:
    """Apply the auto-block policy to a single outcome."""
    if isinstance(outcome, GateError):
        return Decision(allowed=False, error=outcome)

    if outcome.result is Verdict.PASS:
        return Decision(allowed=True, result=outcome)

    # FAIL and PENDING: the full result is kept either way so a caller that
    # disabled auto-block still sees safe=False and can override explicitly.
    return Decision(allowed=not auto_block, result=outcome)
