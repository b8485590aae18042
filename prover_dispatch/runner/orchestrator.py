"""
orchestrator.py — Public verification entry point.

Responsibility: Accept (prover kind, content, optional file path), pick a
transport, run exactly one verification attempt, and return a ProofResult.

Local flow (SubprocessTransport / verify_via_subprocess):
  1. Use the caller's file if given (never deleted), otherwise write the
     content to a scratch file in a fresh private temp directory, named with
     the prover's first extension.
  2. Build the invocation from the per-prover rule table.
  3. Run it through the execution engine with the configured deadline.
  4. Normalize: exit 0 → verified, non-zero → failed, spawn failure →
     error, deadline → timeout, cancellation → error.
  5. Remove the scratch directory on every exit path.

Remote-first selection (ProverClient.verify_proof):
  A healthy remote transport is preferred. Any ProverError it raises falls
  back to local execution when use_subprocess_fallback is set.

Usage:
  client = ProverClient()
  result = client.verify_proof(ProverKind.Z3, "(assert true)(check-sat)")
  if result.passed:
      print("Proof verified!")

Concurrency: calls share no mutable state besides the client's timeout and
fallback settings, which callers must not change while calls are in flight.
"""

from __future__ import annotations

import dataclasses
import logging
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

from prover_dispatch.config import (
    DEFAULT_OUTPUT_CAP_BYTES,
    DEFAULT_TIMEOUT_MS,
    SCRATCH_PREFIX,
    ClientConfig,
)
from prover_dispatch.errors import (
    ConnectionFailed,
    InitFailed,
    ProverError,
    ProverNotFound,
    ProverTimeout,
    SubprocessFailed,
    VerificationCancelled,
)
from prover_dispatch.models import ProofResult, ProofStatus, status_from_exit_code
from prover_dispatch.registry import ProverKind, from_path
from prover_dispatch.runner.executor import CancellationToken, run_invocation
from prover_dispatch.runner.invocation import (
    INVOCATION_RULES,
    InvocationRule,
    build_invocation,
)
from prover_dispatch.runner.transport import RemoteTransport, Transport

logger = logging.getLogger(__name__)

MSG_VERIFIED = "Proof verified"
MSG_FAILED = "Proof failed"
MSG_EXECUTION_FAILED = "Prover execution failed"
MSG_CANCELLED = "Prover execution cancelled"

SCRATCH_STEM = "proof_input"


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


@contextmanager
def scratch_file(kind: ProverKind, content: str | bytes) -> Iterator[Path]:
    """Write ``content`` to a uniquely named scratch file for ``kind``.

    Each call gets its own temporary directory, so concurrent calls never
    share a path. The directory and file are removed when the block exits.

    Raises:
        SubprocessFailed: the scratch directory or file could not be created.
    """
    ext = kind.file_extensions[0]
    try:
        scratch_dir = tempfile.TemporaryDirectory(
            prefix=SCRATCH_PREFIX, ignore_cleanup_errors=True
        )
    except OSError as exc:
        raise SubprocessFailed(f"Cannot create scratch directory: {exc}") from exc

    with scratch_dir as tmp_dir:
        path = Path(tmp_dir) / f"{SCRATCH_STEM}{ext}"
        try:
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise SubprocessFailed(f"Cannot write scratch file {path}: {exc}") from exc
        yield path


def verify_via_subprocess(
    kind: ProverKind,
    content: str | bytes,
    filename: str | Path | None = None,
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    cancel_token: CancellationToken | None = None,
    executables: Mapping[ProverKind, str] | None = None,
    rules: Mapping[ProverKind, InvocationRule] | None = None,
    output_cap: int = DEFAULT_OUTPUT_CAP_BYTES,
) -> ProofResult:
    """
    Verify a proof by running the prover locally.

    Args:
        kind: Prover to run.
        content: Proof source. Ignored when ``filename`` is given.
        filename: Existing caller-owned file to verify in place.
        timeout_ms: Deadline for the prover process.
        cancel_token: Optional token to abort the run.
        executables: Per-prover executable overrides.
        rules: Invocation rule table (defaults to INVOCATION_RULES).
        output_cap: Maximum captured output bytes.

    Returns:
        ProofResult. Execution failures are reported in the result, not raised.

    Raises:
        ProverNotFound: no invocation rule exists for ``kind``.
    """
    table = INVOCATION_RULES if rules is None else rules
    if kind not in table:
        raise ProverNotFound(f"No invocation rule for prover {kind.value!r}")

    start = time.monotonic()

    try:
        with _resolve_input(kind, content, filename) as file_path:
            invocation = build_invocation(
                kind, file_path, executables=executables, rules=table
            )
            logger.info(
                "Running %s (tier %d): %s",
                kind.display_name,
                kind.tier,
                " ".join(invocation.argv),
            )
            outcome = run_invocation(
                invocation,
                timeout_ms=timeout_ms,
                cancel_token=cancel_token,
                output_cap=output_cap,
            )
    except SubprocessFailed as exc:
        logger.error("%s execution failed: %s", kind.display_name, exc)
        return ProofResult(
            status=ProofStatus.ERROR,
            message=MSG_EXECUTION_FAILED,
            prover_output="",
            duration_ms=_elapsed_ms(start),
        )
    except ProverTimeout as exc:
        return ProofResult(
            status=ProofStatus.TIMEOUT,
            message=str(exc),
            prover_output=exc.output,
            duration_ms=_elapsed_ms(start),
        )
    except VerificationCancelled:
        return ProofResult(
            status=ProofStatus.ERROR,
            message=MSG_CANCELLED,
            prover_output="",
            duration_ms=_elapsed_ms(start),
        )

    status = status_from_exit_code(outcome.exit_code)
    result = ProofResult(
        status=status,
        message=MSG_VERIFIED if status is ProofStatus.VERIFIED else MSG_FAILED,
        prover_output=outcome.output,
        duration_ms=_elapsed_ms(start),
    )
    logger.info("%s: %s", kind.display_name, result.summary())
    return result


@contextmanager
def _resolve_input(
    kind: ProverKind, content: str | bytes, filename: str | Path | None
) -> Iterator[str]:
    if filename is not None:
        yield str(filename)
        return
    with scratch_file(kind, content) as path:
        yield str(path)


class SubprocessTransport(Transport):
    """Local execution behind the Transport interface."""

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        executables: Mapping[ProverKind, str] | None = None,
        rules: Mapping[ProverKind, InvocationRule] | None = None,
        output_cap: int = DEFAULT_OUTPUT_CAP_BYTES,
    ):
        self.timeout_ms = timeout_ms
        self.executables = dict(executables or {})
        self.rules = rules
        self.output_cap = output_cap

    def verify(
        self,
        kind: ProverKind,
        content: str | bytes,
        filename: str | Path | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ProofResult:
        return verify_via_subprocess(
            kind,
            content,
            filename,
            timeout_ms=self.timeout_ms,
            cancel_token=cancel_token,
            executables=self.executables,
            rules=self.rules,
            output_cap=self.output_cap,
        )

    def health_check(self) -> bool:
        return True


def _parse_executables(raw: Mapping[str, str] | None) -> dict[ProverKind, str]:
    overrides: dict[ProverKind, str] = {}
    for key, value in (raw or {}).items():
        try:
            overrides[ProverKind(key)] = value
        except ValueError:
            raise InitFailed(f"Unknown prover in executable overrides: {key!r}") from None
    return overrides


class ProverClient:
    """
    Verification client for one logical session.

    Holds the remote endpoint (if any), the prover deadline, and whether local
    subprocess execution may be used when the remote service is unavailable.
    Instances are independent; create one per tenant or configuration.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        use_subprocess_fallback: bool = True,
        *,
        transport: Transport | None = None,
        executables: Mapping[str, str] | None = None,
        output_cap: int = DEFAULT_OUTPUT_CAP_BYTES,
    ):
        if timeout_ms <= 0:
            raise InitFailed(f"timeout_ms must be positive, got {timeout_ms}")

        self.endpoint = endpoint
        self.timeout_ms = timeout_ms
        self.use_subprocess_fallback = use_subprocess_fallback
        self.executables = _parse_executables(executables)
        self.output_cap = output_cap

        if transport is None and endpoint:
            transport = RemoteTransport(endpoint, timeout_ms=timeout_ms)
        self.remote = transport

    @classmethod
    def from_config(cls, config: ClientConfig) -> ProverClient:
        return cls(
            endpoint=config.endpoint,
            timeout_ms=config.timeout_ms,
            use_subprocess_fallback=config.use_subprocess_fallback,
            executables=config.executables,
        )

    def close(self) -> None:
        if self.remote is not None:
            self.remote.close()

    def __enter__(self) -> ProverClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def health_check(self) -> bool:
        """Liveness of the remote service; False when none is configured."""
        if self.remote is None:
            return False
        return self.remote.health_check()

    def _local(self) -> SubprocessTransport:
        return SubprocessTransport(
            timeout_ms=self.timeout_ms,
            executables=self.executables,
            output_cap=self.output_cap,
        )

    def verify_proof(
        self,
        kind: ProverKind,
        content: str | bytes,
        filename: str | Path | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ProofResult:
        """
        Verify a proof and return the normalized verdict.

        Args:
            kind: Prover to use.
            content: Proof source text or bytes.
            filename: Optional existing file to verify instead of a scratch
                copy of ``content``. The file is never modified or deleted.
            cancel_token: Optional token to abort a local run.

        Returns:
            ProofResult with status, message, output and wall-clock duration.

        Raises:
            ProverNotFound: no invocation rule for ``kind``.
            ProverError: the remote service failed (ConnectionFailed,
                RequestFailed, ParseFailed, InvalidResponse) and
                fallback is disabled.
        """
        start = time.monotonic()

        if self.remote is not None and self.remote.health_check():
            try:
                result = self.remote.verify(kind, content, filename, cancel_token)
                return dataclasses.replace(result, duration_ms=_elapsed_ms(start))
            except ProverError as exc:
                if not self.use_subprocess_fallback:
                    raise
                logger.warning(
                    "Remote verification failed (%s); falling back to subprocess", exc
                )
        elif not self.use_subprocess_fallback:
            raise ConnectionFailed(
                "Remote verification service unavailable and subprocess fallback is disabled"
            )
        elif self.remote is not None:
            logger.warning(
                "Remote service at %s is unhealthy; using subprocess", self.endpoint
            )

        result = self._local().verify(kind, content, filename, cancel_token)
        return dataclasses.replace(result, duration_ms=_elapsed_ms(start))

    def verify_file(
        self,
        path: str | Path,
        kind: ProverKind | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ProofResult:
        """Verify an existing proof file, detecting the prover from its name.

        Raises:
            ProverNotFound: ``kind`` is omitted and no prover claims the file's
                extension.
            FileNotFoundError: ``path`` does not exist.
        """
        path = Path(path)
        if kind is None:
            kind = from_path(path)
            if kind is None:
                raise ProverNotFound(f"No prover recognizes the extension of {path.name}")
        content = path.read_bytes()
        return self.verify_proof(kind, content, filename=path, cancel_token=cancel_token)
