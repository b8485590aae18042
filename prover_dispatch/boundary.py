"""
Handle-based boundary for embedding prover dispatch in a host process.

Every function is total over its declared inputs: unknown handles and
out-of-range prover identifiers are answered with a status code instead of
an exception. Status codes mirror ProofStatus.code (0 verified, 1 failed,
2 timeout, 3 error, 4 unknown). MemoryError is the only
exception allowed through prover_verify.

Each prover_init call creates an independent ProverClient; there is no
implicit process-wide client.
"""

from __future__ import annotations

import itertools
import logging
import threading

from prover_dispatch.errors import ProverError
from prover_dispatch.models import ProofStatus
from prover_dispatch.registry import ProverKind, count
from prover_dispatch.runner.orchestrator import ProverClient

logger = logging.getLogger(__name__)

_clients: dict[int, ProverClient] = {}
_lock = threading.Lock()
_next_handle = itertools.count(1)


def prover_init(endpoint: str) -> int | None:
    """Create a client for ``endpoint`` and return its opaque handle."""
    try:
        client = ProverClient(endpoint=endpoint or None)
    except ProverError as exc:
        logger.error("prover_init failed: %s", exc)
        return None
    with _lock:
        handle = next(_next_handle)
        _clients[handle] = client
    return handle


def prover_shutdown(handle: int) -> None:
    with _lock:
        client = _clients.pop(handle, None)
    if client is not None:
        client.close()


def prover_verify(handle: int, prover_id: int, content: bytes | str, length: int) -> int:
    """Verify ``content[:length]`` and return the status code."""
    with _lock:
        client = _clients.get(handle)
    if client is None:
        return ProofStatus.UNKNOWN.code

    kind = ProverKind.from_ordinal(prover_id)
    if kind is None:
        logger.warning("prover_verify: prover id %d out of range", prover_id)
        return ProofStatus.ERROR.code

    if length < 0 or length > len(content):
        return ProofStatus.ERROR.code

    try:
        result = client.verify_proof(kind, content[:length])
    except MemoryError:
        raise
    except Exception as exc:
        logger.error("prover_verify failed: %s", exc)
        return ProofStatus.ERROR.code
    return result.status.code


def prover_health_check(handle: int) -> bool:
    with _lock:
        client = _clients.get(handle)
    if client is None:
        return False
    return client.health_check()


def prover_tier(prover_id: int) -> int:
    """Tier 1..3, or 0 for an out-of-range identifier."""
    kind = ProverKind.from_ordinal(prover_id)
    return kind.tier if kind is not None else 0


def prover_count() -> int:
    return count()
