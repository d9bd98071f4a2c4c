"""Programmatic uvicorn entry point for the gate's HTTP surface.

Reads host and port from PROOFGATE_HOST / PROOFGATE_PORT (127.0.0.1:4343 by
default) and starts uvicorn with conservative connection limits.

Usage:
    python -m proofgate.run
    proofgate-gate                 # via pyproject.toml [project.scripts]
"""

from __future__ import annotations

import sys

import uvicorn

from proofgate.config import load_server_config
from proofgate.errors import ConfigError

# Maximum number of concurrent inbound connections; HTTP 503 beyond this.
UVICORN_LIMIT_CONCURRENCY: int = 100

# OS-level TCP connection backlog queue size.
UVICORN_BACKLOG: int = 50

# HTTP keep-alive timeout in seconds.
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the gate with hardened uvicorn defaults.

    Raises:
        SystemExit(1): PROOFGATE_PORT is invalid. Gate settings are validated
                       by the app lifespan, which also exits 1 on error.
    """
    try:
        server = load_server_config()
    except ConfigError as exc:
        print(f"CONFIG ERROR: {exc.message}", file=sys.stderr)
        raise SystemExit(1) from exc

    uvicorn.run(
        "proofgate.main:app",
        host=server.host,
        port=server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
