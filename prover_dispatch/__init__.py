"""prover_dispatch — one verification interface over a dozen theorem provers.

Takes proof source text in a prover's native language plus a declared prover
kind, and returns a normalized verdict (verified / failed / timeout / error /
unknown) with timing and captured prover output.

Architecture: a static prover registry, a per-prover invocation table, a
subprocess engine with deadline enforcement, and an orchestrator that can
prefer a remote verification service and fall back to local execution.
"""

from prover_dispatch.models import ProofResult, ProofStatus, TacticSuggestion
from prover_dispatch.registry import ProverKind
from prover_dispatch.runner.orchestrator import ProverClient

__all__ = [
    "ProofResult",
    "ProofStatus",
    "ProverClient",
    "ProverKind",
    "TacticSuggestion",
]

__version__ = "0.1.0"
