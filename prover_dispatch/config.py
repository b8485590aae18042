"""
Shared configuration for prover dispatch.

Defines timeout and output-capture defaults, remote retry settings, and the
ClientConfig dataclass that can be populated from PROVER_DISPATCH_* variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from prover_dispatch.errors import InitFailed

# Default deadline for a single prover run (milliseconds). Five minutes is
# enough for the slow session builds (Isabelle) on a warm heap image.
DEFAULT_TIMEOUT_MS = 300_000

# Captured stdout+stderr beyond this many bytes is truncated.
DEFAULT_OUTPUT_CAP_BYTES = 4 * 1024 * 1024

# How often the engine wakes to check the cancellation token (seconds).
CANCEL_POLL_INTERVAL_S = 0.1

# Prefix for per-call scratch directories.
SCRATCH_PREFIX = "prover_dispatch_"

# Retry configuration for transient remote errors (5xx).
REMOTE_MAX_RETRIES = 2
REMOTE_RETRY_BASE_DELAY_S = 1.0  # Exponential backoff: 1s, 2s

ENV_PREFIX = "PROVER_DISPATCH_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ClientConfig:
    """Settings needed to build a ProverClient."""

    endpoint: str | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    use_subprocess_fallback: bool = True
    executables: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientConfig:
        """Read PROVER_DISPATCH_* variables.

        Recognized: ENDPOINT, TIMEOUT_MS, FALLBACK, and <KIND>_BIN for any
        prover kind (e.g. PROVER_DISPATCH_Z3_BIN=/opt/z3/bin/z3).
        """
        env = os.environ if environ is None else environ

        endpoint = env.get(ENV_PREFIX + "ENDPOINT") or None

        raw_timeout = env.get(ENV_PREFIX + "TIMEOUT_MS")
        timeout_ms = DEFAULT_TIMEOUT_MS
        if raw_timeout:
            try:
                timeout_ms = int(raw_timeout)
            except ValueError:
                raise InitFailed(
                    f"{ENV_PREFIX}TIMEOUT_MS must be an integer, got {raw_timeout!r}"
                ) from None
            if timeout_ms <= 0:
                raise InitFailed(f"{ENV_PREFIX}TIMEOUT_MS must be positive")

        fallback = True
        raw_fallback = env.get(ENV_PREFIX + "FALLBACK")
        if raw_fallback:
            value = raw_fallback.strip().lower()
            if value in _TRUE_VALUES:
                fallback = True
            elif value in _FALSE_VALUES:
                fallback = False
            else:
                raise InitFailed(
                    f"{ENV_PREFIX}FALLBACK must be a boolean, got {raw_fallback!r}"
                )

        executables: dict[str, str] = {}
        for key, value in env.items():
            if key.startswith(ENV_PREFIX) and key.endswith("_BIN") and value:
                kind = key[len(ENV_PREFIX):-len("_BIN")].lower()
                executables[kind] = value

        return cls(
            endpoint=endpoint,
            timeout_ms=timeout_ms,
            use_subprocess_fallback=fallback,
            executables=executables,
        )
