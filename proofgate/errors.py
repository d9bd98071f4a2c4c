"""Failure taxonomy for the ProofGate gate.

Three families, one per stage that can fail before a verdict exists:

  ConfigError  — settings could not be resolved. Fatal at startup, never retried.
  BuildError   — the transaction fields are incomplete or malformed. Recovered
                 locally as a denial; the validation service is never contacted.
  ClientError  — the remote call failed (transport, upstream status, or a
                 response that does not match the expected shape). Surfaced as
                 a denial with the underlying message preserved.

Every error carries a ``kind`` so callers and logs can branch on the cause
without parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ConfigErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL_FORMAT = "invalid_credential_format"
    INVALID_URL = "invalid_url"
    INVALID_CHAIN_ID = "invalid_chain_id"
    INVALID_BOOLEAN = "invalid_boolean"
    INVALID_CONFIG_FILE = "invalid_config_file"
    INVALID_PORT = "invalid_port"


class BuildErrorKind(str, Enum):
    INCOMPLETE_TRANSACTION = "incomplete_transaction"
    MALFORMED_TRANSACTION = "malformed_transaction"


class ClientErrorKind(str, Enum):
    TRANSPORT = "transport"
    UPSTREAM = "upstream"
    MALFORMED_RESPONSE = "malformed_response"


class GateError(Exception):
    """Base class for every failure that prevents a verdict.

    ``kind`` is an enum member for the typed subclasses and the plain string
    ``"internal"`` for unexpected failures wrapped at the gate boundary.
    """

    def __init__(self, kind: Enum | str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def kind_name(self) -> str:
        return self.kind.value if isinstance(self.kind, Enum) else str(self.kind)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind_name!r}, {self.message!r})"


class ConfigError(GateError):
    """Raised by the config resolver. ``setting`` names the offending key."""

    def __init__(
        self, kind: ConfigErrorKind, message: str, setting: Optional[str] = None
    ) -> None:
        super().__init__(kind, message)
        self.setting = setting


class BuildError(GateError):
    """Raised by the request builder. ``fields`` lists the offending fields."""

    def __init__(
        self, kind: BuildErrorKind, message: str, fields: tuple[str, ...] = ()
    ) -> None:
        super().__init__(kind, message)
        self.fields = fields


class ClientError(GateError):
    """Raised by the validation client.

    ``status_code`` is set for UPSTREAM errors (and for MALFORMED_RESPONSE when
    the status was a success). ``detail`` keeps the raw transport description.
    """

    def __init__(
        self,
        kind: ClientErrorKind,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(kind, message)
        self.status_code = status_code
        self.detail = detail
