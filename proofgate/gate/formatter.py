"""User-facing text for a Decision.

Kept apart from decision logic so wording can change without touching what
is allowed. ``format_decision`` is pure: the same Decision always renders to
the same text, and rendering never changes ``decision.allowed``.

Shapes (Markdown, as rendered by chat front ends):

  approved  ✅ **Transaction Approved**
  blocked   🚨 **Transaction Blocked**  /  ⏳ **Transaction Blocked (verdict pending)**
  error     ❌ **ProofGate Error:** <message>
            ⚠️ <message>                 (incomplete / malformed transaction input)
"""

from __future__ import annotations

from proofgate.constants import EVIDENCE_VIEWER_URL
from proofgate.errors import BuildError, GateError
from proofgate.models.decision import Decision
from proofgate.models.validation import ValidationResult, Verdict

APPROVED_TITLE = "✅ **Transaction Approved**"
BLOCKED_TITLE = "🚨 **Transaction Blocked**"
PENDING_TITLE = "⏳ **Transaction Blocked (verdict pending)**"
OVERRIDE_NOTE = (
    "⚠️ Auto-block is disabled: this transaction was NOT prevented from executing."
)


def evidence_link(result: ValidationResult) -> str:
    if result.evidence_uri:
        return result.evidence_uri
    return f"{EVIDENCE_VIEWER_URL}/{result.validation_id}"


def _verdict_lines(result: ValidationResult) -> list[str]:
    lines = [
        f"**Reason:** {result.reason}",
        f"**Validation ID:** `{result.validation_id}`",
        f"**Evidence:** [View]({evidence_link(result)})",
    ]
    failed = result.failed_checks
    if failed:
        lines.append("**Failed checks:**")
        lines.extend(
            f"- {check.name} ({check.severity.value}): {check.details}"
            for check in failed
        )
    return lines


def format_error(error: GateError) -> str:
    if isinstance(error, BuildError):
        return f"⚠️ {error.message}"
    return f"❌ **ProofGate Error:** {error.message}"


def format_decision(decision: Decision) -> str:
    """Render a Decision as display text."""
    if decision.error is not None:
        return format_error(decision.error)

    result = decision.result
    if result is None:  # unreachable: Decision enforces result xor error
        raise ValueError("Decision has neither result nor error")

    if result.safe:
        title = APPROVED_TITLE
    elif result.result is Verdict.PENDING:
        title = PENDING_TITLE
    else:
        title = BLOCKED_TITLE

    text = title + "\n\n" + "\n".join(_verdict_lines(result))
    if decision.overridden:
        text += "\n\n" + OVERRIDE_NOTE
    return text
