"""Config resolution for the ProofGate gate.

Raw settings come from the host environment (``PROOFGATE_*`` variables) and,
optionally, a YAML file. ``resolve_config()`` turns them into an immutable
``GateConfig`` or raises ``ConfigError``; it is pure and does no I/O.
``load_settings()`` is the only function here that touches the filesystem or
``os.environ``.

Settings (all optional except the credential):

  PROOFGATE_API_KEY       — dashboard key, must start with ``pg_``
  PROOFGATE_API_URL       — service endpoint (default https://www.proofgate.xyz/api)
  PROOFGATE_GUARDRAIL_ID  — default guardrail; omitted → account-level default
  PROOFGATE_CHAIN_ID      — default chain (positive integer, default 8453)
  PROOFGATE_AUTO_BLOCK    — "true" | "false" (default "true")
  PROOFGATE_DEBUG         — "true" | "false" (default "false")

Config file search order (first existing file wins; env vars override its values):
  1. ``config_path`` argument
  2. PROOFGATE_CONFIG environment variable
  3. ``.proofgate/config.yaml`` (working directory — development)
  4. ``~/.proofgate/config.yaml`` (home directory — deployments)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import yaml

from proofgate.constants import (
    API_KEY_PREFIX,
    DEFAULT_API_URL,
    DEFAULT_CHAIN_ID,
    DEFAULT_HOST,
    DEFAULT_PORT,
    ENV_API_KEY,
    ENV_API_URL,
    ENV_AUTO_BLOCK,
    ENV_CHAIN_ID,
    ENV_CONFIG,
    ENV_DEBUG,
    ENV_GUARDRAIL_ID,
    ENV_HOST,
    ENV_PORT,
    GATE_SETTINGS_KEYS,
)
from proofgate.errors import ConfigError, ConfigErrorKind
from proofgate.utils.logger import get_logger

logger = get_logger(__name__)

# Default config search paths (PROOFGATE_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    ".proofgate/config.yaml",
    os.path.expanduser("~/.proofgate/config.yaml"),
]

# YAML file keys → settings keys
FILE_KEYS: dict[str, str] = {
    "api_key": ENV_API_KEY,
    "api_url": ENV_API_URL,
    "guardrail_id": ENV_GUARDRAIL_ID,
    "chain_id": ENV_CHAIN_ID,
    "auto_block": ENV_AUTO_BLOCK,
    "debug": ENV_DEBUG,
}

VALID_URL_SCHEMES: frozenset[str] = frozenset({"http", "https"})

# ASCII digits only: str.isdigit() also accepts "²" and "٨٤٥٣".
DIGITS_RE = re.compile(r"[0-9]+")


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GateConfig:
    """Resolved gate configuration. Built once at startup, shared read-only.

    ``api_key`` is excluded from ``repr`` so configs can be logged safely.
    """

    api_key: str = field(repr=False)
    api_url: str = DEFAULT_API_URL
    chain_id: int = DEFAULT_CHAIN_ID
    guardrail_id: Optional[str] = None
    auto_block: bool = True
    debug: bool = False

    @property
    def masked_key(self) -> str:
        return f"{self.api_key[:len(API_KEY_PREFIX) + 4]}…"


@dataclass(frozen=True)
class ServerConfig:
    """Binding for the optional HTTP surface (``proofgate.run``)."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


# ─── Value parsing ───────────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_positive_int(value: Any) -> Optional[int]:
    """Coerce ``value`` to a positive int, or return None if it is not one.

    Accepts ints and ASCII decimal strings ("8453", " 10 "). Booleans, floats
    with a fractional part, and any other string are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        if not DIGITS_RE.fullmatch(text):
            return None
        number = int(text)
        return number if number > 0 else None
    return None


def _parse_bool(value: Any, key: str, default: bool) -> bool:
    if _is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    raise ConfigError(
        ConfigErrorKind.INVALID_BOOLEAN,
        f"{key} must be 'true' or 'false', got {value!r}",
        setting=key,
    )


def _validate_url(value: str, key: str) -> str:
    """Return ``value`` without a trailing slash, or raise INVALID_URL."""
    try:
        parts = urlsplit(value.strip())
    except ValueError as exc:
        raise ConfigError(
            ConfigErrorKind.INVALID_URL,
            f"{key} is not a valid URL: {value!r} ({exc})",
            setting=key,
        ) from exc
    if parts.scheme not in VALID_URL_SCHEMES:
        raise ConfigError(
            ConfigErrorKind.INVALID_URL,
            f"{key} must be an http(s) URL, got {value!r}",
            setting=key,
        )
    if not parts.hostname:
        raise ConfigError(
            ConfigErrorKind.INVALID_URL,
            f"{key} has no host: {value!r}",
            setting=key,
        )
    if parts.username or parts.password:
        # The credential travels in a header, never in the URL.
        raise ConfigError(
            ConfigErrorKind.INVALID_URL,
            f"{key} must not embed credentials",
            setting=key,
        )
    return value.strip().rstrip("/")


# ─── Resolution ──────────────────────────────────────────────────────────────


def resolve_config(settings: Mapping[str, Any]) -> GateConfig:
    """Validate raw settings and return a fully-defaulted ``GateConfig``.

    Args:
        settings: Mapping keyed by ``PROOFGATE_*`` names. Missing keys, ``None``
                  and blank strings mean "not set".

    Returns:
        GateConfig with every field populated.

    Raises:
        ConfigError: MISSING_CREDENTIAL, INVALID_CREDENTIAL_FORMAT, INVALID_URL,
                     INVALID_CHAIN_ID or INVALID_BOOLEAN.
    """
    # ── Credential ────────────────────────────────────────────────────────────
    api_key = settings.get(ENV_API_KEY)
    if _is_blank(api_key):
        raise ConfigError(
            ConfigErrorKind.MISSING_CREDENTIAL,
            f"{ENV_API_KEY} is required",
            setting=ENV_API_KEY,
        )
    if not isinstance(api_key, str) or not api_key.startswith(API_KEY_PREFIX):
        raise ConfigError(
            ConfigErrorKind.INVALID_CREDENTIAL_FORMAT,
            f'{ENV_API_KEY} must start with "{API_KEY_PREFIX}"',
            setting=ENV_API_KEY,
        )

    # ── Endpoint ──────────────────────────────────────────────────────────────
    raw_url = settings.get(ENV_API_URL)
    if _is_blank(raw_url):
        api_url = DEFAULT_API_URL
    elif not isinstance(raw_url, str):
        raise ConfigError(
            ConfigErrorKind.INVALID_URL,
            f"{ENV_API_URL} must be a string",
            setting=ENV_API_URL,
        )
    else:
        api_url = _validate_url(raw_url, ENV_API_URL)

    # ── Chain ─────────────────────────────────────────────────────────────────
    raw_chain = settings.get(ENV_CHAIN_ID)
    if _is_blank(raw_chain):
        chain_id = DEFAULT_CHAIN_ID
    else:
        parsed = parse_positive_int(raw_chain)
        if parsed is None:
            raise ConfigError(
                ConfigErrorKind.INVALID_CHAIN_ID,
                f"{ENV_CHAIN_ID} must be a positive integer, got {raw_chain!r}",
                setting=ENV_CHAIN_ID,
            )
        chain_id = parsed

    # ── Guardrail ─────────────────────────────────────────────────────────────
    raw_guardrail = settings.get(ENV_GUARDRAIL_ID)
    guardrail_id = None if _is_blank(raw_guardrail) else str(raw_guardrail).strip()

    return GateConfig(
        api_key=api_key,
        api_url=api_url,
        chain_id=chain_id,
        guardrail_id=guardrail_id,
        auto_block=_parse_bool(settings.get(ENV_AUTO_BLOCK), ENV_AUTO_BLOCK, True),
        debug=_parse_bool(settings.get(ENV_DEBUG), ENV_DEBUG, False),
    )


def is_configured(settings: Mapping[str, Any]) -> bool:
    """True when a ``pg_``-prefixed credential is present.

    Cheap pre-check for hosts that only want to register the gate when it can
    work; it does not validate the remaining settings.
    """
    api_key = settings.get(ENV_API_KEY)
    return isinstance(api_key, str) and api_key.startswith(API_KEY_PREFIX)


# ─── Loading ─────────────────────────────────────────────────────────────────


def _normalise_scalar(value: Any) -> Optional[str]:
    """YAML scalars → the literal string forms the resolver expects."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _read_config_file(path: str) -> dict[str, Optional[str]]:
    try:
        with open(path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigError(
            ConfigErrorKind.INVALID_CONFIG_FILE,
            f"Failed to parse {path}: {exc}",
        ) from exc
    except OSError as exc:
        raise ConfigError(
            ConfigErrorKind.INVALID_CONFIG_FILE,
            f"Could not read {path}: {exc}",
        ) from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(
            ConfigErrorKind.INVALID_CONFIG_FILE,
            f"{path} is not a YAML mapping",
        )

    unknown = sorted(set(raw) - set(FILE_KEYS))
    if unknown:
        logger.warning("Unknown config keys ignored", path=path, keys=unknown)

    return {
        FILE_KEYS[key]: _normalise_scalar(value)
        for key, value in raw.items()
        if key in FILE_KEYS
    }


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Optional[str]]:
    """Collect raw settings from the config file (if any) and the environment.

    Environment variables take precedence over file values. A missing config
    file is not an error.

    Raises:
        ConfigError(INVALID_CONFIG_FILE): file exists but cannot be read/parsed.
    """
    env = os.environ if environ is None else environ

    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = env.get(ENV_CONFIG)
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    settings: dict[str, Optional[str]] = {}
    if found_path is None:
        logger.debug("No config file found, using environment only", searched=search_paths)
    else:
        logger.info("Loading config", path=found_path)
        settings.update(_read_config_file(found_path))

    for key in GATE_SETTINGS_KEYS:
        if key in env:
            settings[key] = env[key]
    return settings


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GateConfig:
    """``resolve_config(load_settings(...))`` with a startup log line."""
    config = resolve_config(load_settings(config_path, environ))
    logger.info(
        "Config loaded",
        api_key=config.masked_key,
        api_url=config.api_url,
        chain_id=config.chain_id,
        guardrail_id=config.guardrail_id,
        auto_block=config.auto_block,
        debug=config.debug,
    )
    if not config.auto_block:
        logger.warning(
            "Auto-block is disabled: FAIL and PENDING verdicts will not prevent execution"
        )
    return config


def load_server_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Read the HTTP surface binding from PROOFGATE_HOST / PROOFGATE_PORT.

    Raises:
        ConfigError(INVALID_PORT): PROOFGATE_PORT is not an integer in 1..65535.
    """
    env = os.environ if environ is None else environ
    host = env.get(ENV_HOST) or DEFAULT_HOST
    raw_port = env.get(ENV_PORT)
    if _is_blank(raw_port):
        port: Optional[int] = DEFAULT_PORT
    else:
        port = parse_positive_int(raw_port)
    if port is None or port > 65535:
        raise ConfigError(
            ConfigErrorKind.INVALID_PORT,
            f"{ENV_PORT} is not a valid port: {raw_port!r}",
            setting=ENV_PORT,
        )
    if host == "0.0.0.0":
        logger.warning(
            "SECURITY WARNING: the gate is configured to bind on 0.0.0.0 (all interfaces). "
            "Recommended: PROOFGATE_HOST=127.0.0.1 for local-only access."
        )
    return ServerConfig(host=host, port=port)
