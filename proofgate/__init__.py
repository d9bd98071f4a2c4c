"""ProofGate transaction gate.

Validates blockchain transactions with the ProofGate policy service before an
AI agent is allowed to send them. The in-process entry point is
``proofgate.gate.TransactionGate``; ``proofgate.main`` exposes the same gate
over HTTP for hosts that prefer a sidecar.
"""

__version__ = "1.0.0"
