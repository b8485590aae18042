"""
Data models for prover dispatch.

ProofStatus is the unified verdict every prover outcome is normalized into.
ProofResult is what the orchestrator hands back to callers. TacticSuggestion
is the record shape produced by tactic-suggestion services; nothing here
populates it.

All models support JSON round-tripping via to_dict()/from_dict().
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ProofStatus(Enum):
    """Normalized outcome of a verification attempt."""

    VERIFIED = "verified"
    FAILED = "failed"
    TIMEOUT = "timeout"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, token: str) -> ProofStatus:
        """Decode a remote status token.

        Only the exact uppercase tokens VERIFIED, FAILED, TIMEOUT and ERROR
        are recognized. Anything else, including case variants and the empty
        string, is UNKNOWN.
        """
        return _TOKENS.get(token, cls.UNKNOWN)

    @property
    def code(self) -> int:
        """Stable ordinal used across the binary boundary (0..4)."""
        return _CODES[self]

    @classmethod
    def from_code(cls, code: int) -> ProofStatus:
        for status, value in _CODES.items():
            if value == code:
                return status
        return cls.UNKNOWN


_TOKENS: dict[str, ProofStatus] = {
    "VERIFIED": ProofStatus.VERIFIED,
    "FAILED": ProofStatus.FAILED,
    "TIMEOUT": ProofStatus.TIMEOUT,
    "ERROR": ProofStatus.ERROR,
}

_CODES: dict[ProofStatus, int] = {
    ProofStatus.VERIFIED: 0,
    ProofStatus.FAILED: 1,
    ProofStatus.TIMEOUT: 2,
    ProofStatus.ERROR: 3,
    ProofStatus.UNKNOWN: 4,
}


def status_from_exit_code(exit_code: int) -> ProofStatus:
    """Exit code 0 is a verified proof; any other code is a failed one."""
    return ProofStatus.VERIFIED if exit_code == 0 else ProofStatus.FAILED


@dataclass(frozen=True)
class ProofResult:
    """Result of one verification attempt."""

    status: ProofStatus
    message: str
    prover_output: str = ""
    duration_ms: int = 0

    @property
    def passed(self) -> bool:
        return self.status is ProofStatus.VERIFIED

    def summary(self) -> str:
        """One-line summary for logs and the CLI."""
        return f"{self.status.value.upper()}: {self.message} ({self.duration_ms} ms)"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "prover_output": self.prover_output,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProofResult:
        try:
            status = ProofStatus(data.get("status", "unknown"))
        except ValueError:
            status = ProofStatus.UNKNOWN
        return cls(
            status=status,
            message=str(data.get("message", "")),
            prover_output=str(data.get("prover_output", "")),
            duration_ms=max(0, int(data.get("duration_ms", 0))),
        )


@dataclass(frozen=True)
class TacticSuggestion:
    """A proof tactic proposed by a suggestion model, with its confidence."""

    tactic: str
    confidence: float
    explanation: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be within [0, 1], got {self.confidence}"
            )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "tactic": self.tactic,
            "confidence": self.confidence,
        }
        if self.explanation is not None:
            d["explanation"] = self.explanation
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TacticSuggestion:
        return cls(
            tactic=str(data["tactic"]),
            confidence=float(data["confidence"]),
            explanation=data.get("explanation"),
        )
