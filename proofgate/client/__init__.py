"""Outbound client for the ProofGate validation service (see engine.py)."""

from proofgate.client.engine import ValidationClient, create_http_client

__all__ = ["ValidationClient", "create_http_client"]
