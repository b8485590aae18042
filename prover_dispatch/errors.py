"""Error taxonomy for prover dispatch.

Execution failures inside ``verify_proof`` are folded into a ProofResult with
status ``error`` by the orchestrator. The exceptions here surface only for
lookup failures, transport failures without fallback, and bad configuration.
"""

from __future__ import annotations


class ProverError(RuntimeError):
    """Base class for every failure raised by this package."""


class InitFailed(ProverError):
    """Client or configuration could not be constructed."""


class ConnectionFailed(ProverError):
    """The remote verification service could not be reached."""


class RequestFailed(ProverError):
    """The remote service answered with a non-success HTTP status."""


class ParseFailed(ProverError):
    """A remote response body was not valid JSON."""


class InvalidResponse(ProverError):
    """A remote response parsed but lacked the expected fields."""


class VerificationFailed(ProverError):
    """Verification could not be carried out by any transport."""


class ProverNotFound(ProverError):
    """No prover (or no invocation rule) matches the request."""


class SubprocessFailed(ProverError):
    """The prover process could not be spawned or waited on."""


class ProverTimeout(ProverError):
    """The prover process exceeded its deadline and was killed."""

    def __init__(self, timeout_ms: int, output: str = ""):
        super().__init__(f"Prover timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms
        self.output = output


class VerificationCancelled(ProverError):
    """The caller cancelled an in-flight verification."""
