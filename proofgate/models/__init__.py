"""ProofGate models package.

Defines the data contracts shared by the builder, client, evaluator and formatter:

  - validation.py — ValidationRequest, ValidationResult, ValidationCheck, AgentInfo,
                    Verdict, Severity (the wire-facing shapes)
  - decision.py   — Decision, VerdictState (the gate's own output, never transmitted)
  - responses.py  — JSON responses for the inbound HTTP API

There is exactly one request shape and one result shape. Older payload variants
are not accepted.
"""
