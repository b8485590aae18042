"""
executor.py — Subprocess execution engine.

Responsibility: Spawn one prover invocation, bound its wall-clock time,
capture its output, and report the exit code. Process-level failures become
exceptions from prover_dispatch.errors; the orchestrator folds them into a
ProofResult.

Guarantees:
  1. Spawn failure (missing binary, permission denied) → SubprocessFailed.
  2. Deadline expiry → the whole process group is killed and reaped, then
     ProverTimeout.
  3. Cancellation via CancellationToken → killed and reaped, then
     VerificationCancelled.
  4. Termination by signal is reported as exit code 1, never as the raw
     signal number.
  5. Each output pipe is drained continuously; at most output_cap bytes
     per stream are kept and the rest is discarded as it arrives.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Optional

from prover_dispatch.config import (
    CANCEL_POLL_INTERVAL_S,
    DEFAULT_OUTPUT_CAP_BYTES,
    DEFAULT_TIMEOUT_MS,
)
from prover_dispatch.errors import (
    ProverTimeout,
    SubprocessFailed,
    VerificationCancelled,
)
from prover_dispatch.runner.invocation import Invocation

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n[... prover output truncated ...]\n"

# Pipe read size for the output drain threads.
READ_CHUNK_BYTES = 64 * 1024

# How long to wait for the drain threads once the prover has exited.
READER_JOIN_TIMEOUT_S = 5.0

# Sentinel exit code for any non-exit termination (signal, crash).
SIGNALLED_EXIT_CODE = 1

_POSIX = os.name == "posix"


class CancellationToken:
    """Thread-safe flag a caller sets to abort an in-flight verification."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ExecutionOutcome:
    """What a prover process left behind when it exited on its own."""

    exit_code: int
    output: str = ""
    truncated: bool = False


class _CappedReader(threading.Thread):
    """Drains one pipe to EOF, keeping at most ``cap`` bytes of it."""

    def __init__(self, stream: IO[bytes], cap: int):
        super().__init__(daemon=True)
        self._stream = stream
        self._cap = cap
        self._chunks: list[bytes] = []
        self._kept = 0
        self.overflowed = False

    def run(self) -> None:
        try:
            while True:
                chunk = self._stream.read1(READ_CHUNK_BYTES)
                if not chunk:
                    break
                room = self._cap - self._kept
                if room > 0:
                    self._chunks.append(chunk[:room])
                    self._kept += min(room, len(chunk))
                if len(chunk) > room:
                    self.overflowed = True
        except OSError as exc:
            logger.debug("Output pipe closed while draining: %s", exc)
        finally:
            self._stream.close()

    @property
    def data(self) -> bytes:
        return b"".join(self._chunks)


def _combine_output(readers: list[_CappedReader], cap: int) -> tuple[str, bool]:
    """Merge stdout and stderr, truncating beyond ``cap`` bytes.

    Provers are inconsistent about which stream carries diagnostics, so both
    are kept.
    """
    parts = [reader.data for reader in readers if reader.data]
    raw = b"\n".join(parts)
    truncated = any(reader.overflowed for reader in readers) or len(raw) > cap
    raw = raw[:cap]
    text = raw.decode("utf-8", errors="replace")
    if truncated:
        text += TRUNCATION_MARKER
    return text, truncated


def _kill_group(proc: subprocess.Popen) -> None:
    """SIGKILL the prover and everything it spawned."""
    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            proc.kill()
    else:
        proc.kill()


def _join_readers(proc: subprocess.Popen, readers: list[_CappedReader]) -> None:
    for reader in readers:
        reader.join(READER_JOIN_TIMEOUT_S)
    if any(reader.is_alive() for reader in readers):
        # A leftover child of the prover still holds the pipes open.
        _kill_group(proc)
        for reader in readers:
            reader.join(READER_JOIN_TIMEOUT_S)


def _terminate(proc: subprocess.Popen, readers: list[_CappedReader]) -> None:
    """Kill the prover group, reap it, and let the drain threads finish."""
    _kill_group(proc)
    proc.wait()
    _join_readers(proc, readers)


def run_invocation(
    invocation: Invocation,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    cancel_token: CancellationToken | None = None,
    output_cap: int = DEFAULT_OUTPUT_CAP_BYTES,
) -> ExecutionOutcome:
    """
    Run a prover invocation to completion.

    Args:
        invocation: argv (and optional stdin file) to execute.
        timeout_ms: Wall-clock deadline for the process.
        cancel_token: Optional token; when cancelled, the process is killed.
        output_cap: Maximum number of output bytes kept per stream.

    Returns:
        ExecutionOutcome with the normalized exit code and captured output.

    Raises:
        SubprocessFailed: the process could not be spawned or waited on.
        ProverTimeout: the deadline passed before the process exited.
        VerificationCancelled: the token was cancelled first.
    """
    argv = list(invocation.argv)
    stdin_handle: Optional[IO[bytes]] = None

    try:
        if invocation.stdin_path is not None:
            try:
                stdin_handle = open(invocation.stdin_path, "rb")
            except OSError as exc:
                raise SubprocessFailed(
                    f"Cannot open {invocation.stdin_path} as prover input: {exc}"
                ) from exc

        try:
            proc = subprocess.Popen(
                argv,
                stdin=stdin_handle if stdin_handle is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            logger.error("Failed to spawn %r: %s", argv[0], exc)
            raise SubprocessFailed(f"Failed to spawn {argv[0]!r}: {exc}") from exc

        logger.debug("Spawned pid %d: %s", proc.pid, " ".join(argv))
        readers = [
            _CappedReader(proc.stdout, output_cap),
            _CappedReader(proc.stderr, output_cap),
        ]
        for reader in readers:
            reader.start()
        deadline = time.monotonic() + timeout_ms / 1000.0

        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    _terminate(proc, readers)
                    output, _ = _combine_output(readers, output_cap)
                    logger.warning(
                        "%s exceeded %d ms, killed pid %d", argv[0], timeout_ms, proc.pid
                    )
                    raise ProverTimeout(timeout_ms, output)

                wait_s = remaining
                if cancel_token is not None:
                    wait_s = min(remaining, CANCEL_POLL_INTERVAL_S)

                try:
                    proc.wait(timeout=wait_s)
                    break
                except subprocess.TimeoutExpired:
                    if cancel_token is not None and cancel_token.cancelled:
                        _terminate(proc, readers)
                        logger.info("Cancelled %s (pid %d)", argv[0], proc.pid)
                        raise VerificationCancelled(
                            f"Verification with {argv[0]!r} was cancelled"
                        ) from None
        except (ProverTimeout, VerificationCancelled):
            raise
        except OSError as exc:
            _terminate(proc, readers)
            raise SubprocessFailed(f"Failed waiting on {argv[0]!r}: {exc}") from exc
        except BaseException:
            # KeyboardInterrupt and friends must not leave an orphaned prover.
            _terminate(proc, readers)
            raise
    finally:
        if stdin_handle is not None:
            stdin_handle.close()

    _join_readers(proc, readers)

    exit_code = proc.returncode
    if exit_code < 0:
        logger.info("%s terminated by signal %d", argv[0], -exit_code)
        exit_code = SIGNALLED_EXIT_CODE

    output, truncated = _combine_output(readers, output_cap)
    return ExecutionOutcome(exit_code=exit_code, output=output, truncated=truncated)
