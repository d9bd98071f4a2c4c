"""Decision — the gate's own output for one transaction intent.

A Decision is never transmitted to the validation service. It pairs the final
allow/deny bit with whatever produced it: the verdict (``result``) or the
failure that prevented one (``error``). Exactly one of the two is set.

    allowed is False whenever error is set            (fail-closed)
    allowed is True  whenever result.safe             (a pass is never blocked)
    allowed is (not auto_block) for FAIL / PENDING    (explicit opt-out)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from proofgate.errors import GateError
from proofgate.models.validation import ValidationResult


class VerdictState(str, Enum):
    """Lifecycle of obtaining a verdict for one call.

    NOT_REQUESTED → PENDING → RESOLVED | ERRORED. Only the terminal states are
    ever recorded on a Decision; the first two exist for callers that track
    in-flight validations.
    """

    NOT_REQUESTED = "not_requested"
    PENDING = "pending"
    RESOLVED = "resolved"
    ERRORED = "errored"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    result: Optional[ValidationResult] = None
    error: Optional[GateError] = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("Decision needs exactly one of result or error")
        if self.error is not None and self.allowed:
            raise ValueError("Decision without a verdict cannot allow execution")

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def state(self) -> VerdictState:
        return VerdictState.ERRORED if self.error is not None else VerdictState.RESOLVED

    @property
    def safe(self) -> bool:
        return self.result is not None and self.result.safe

    @property
    def overridden(self) -> bool:
        """Execution allowed although the verdict was not a pass (auto-block off)."""
        return self.allowed and not self.safe

    def to_dict(self) -> dict[str, Any]:
        error: Optional[dict[str, Any]] = None
        if self.error is not None:
            error = {
                "type": type(self.error).__name__,
                "kind": self.error.kind_name,
                "message": self.error.message,
            }
        return {
            "allowed": self.allowed,
            "state": self.state.value,
            "safe": self.safe,
            "overridden": self.overridden,
            "result": self.result.to_dict() if self.result is not None else None,
            "error": error,
        }
