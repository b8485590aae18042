"""
transport.py — Verification transports.

A transport takes (prover kind, content) and returns a ProofResult. Two
implementations exist:
  - RemoteTransport (here): a verification service reached over HTTP with a
    GraphQL `verifyProof` mutation and a `/health` liveness probe.
  - SubprocessTransport (orchestrator.py): runs the prover locally.

The remote service reports status as one of the tokens VERIFIED, FAILED,
TIMEOUT, ERROR; ProofStatus.from_string is the decoder for that field.

Transient server errors (HTTP 5xx) are retried with exponential backoff.
Everything else surfaces immediately as a ProverError subclass so that the
orchestrator can decide whether to fall back to local execution.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from prover_dispatch.config import (
    DEFAULT_TIMEOUT_MS,
    REMOTE_MAX_RETRIES,
    REMOTE_RETRY_BASE_DELAY_S,
)
from prover_dispatch.errors import (
    ConnectionFailed,
    InvalidResponse,
    ParseFailed,
    RequestFailed,
)
from prover_dispatch.models import ProofResult, ProofStatus
from prover_dispatch.registry import ProverKind

logger = logging.getLogger(__name__)

# Liveness probes should answer fast; a slow probe counts as unhealthy.
HEALTH_TIMEOUT_S = 5.0

VERIFY_MUTATION = """
mutation VerifyProof($prover: ProverKind!, $content: String!) {
  verifyProof(prover: $prover, content: $content) {
    status
    message
    output
    durationMs
  }
}
""".strip()


class Transport(ABC):
    """Common surface of every verification transport."""

    @abstractmethod
    def verify(
        self,
        kind: ProverKind,
        content: str | bytes,
        filename: str | None = None,
        cancel_token: Any = None,
    ) -> ProofResult:
        """Verify ``content`` with ``kind`` and return the normalized result."""
        raise NotImplementedError

    @abstractmethod
    def health_check(self) -> bool:
        """Report whether this transport can accept requests right now."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources."""


def parse_verify_response(data: Any) -> ProofResult:
    """Decode a GraphQL `verifyProof` response body into a ProofResult.

    Raises:
        InvalidResponse: GraphQL errors, or the expected fields are missing.
    """
    if not isinstance(data, dict):
        raise InvalidResponse(f"Expected a JSON object, got {type(data).__name__}")

    errors = data.get("errors")
    if errors:
        first = errors[0] if isinstance(errors, list) else errors
        message = first.get("message") if isinstance(first, dict) else str(first)
        raise InvalidResponse(f"Remote service reported an error: {message}")

    payload = (data.get("data") or {}).get("verifyProof")
    if not isinstance(payload, dict) or not isinstance(payload.get("status"), str):
        raise InvalidResponse("Response has no verifyProof.status field")

    try:
        duration_ms = max(0, int(payload.get("durationMs") or 0))
    except (TypeError, ValueError):
        raise InvalidResponse(
            f"durationMs is not an integer: {payload.get('durationMs')!r}"
        ) from None

    return ProofResult(
        status=ProofStatus.from_string(payload["status"]),
        message=str(payload.get("message") or ""),
        prover_output=str(payload.get("output") or ""),
        duration_ms=duration_ms,
    )


class RemoteTransport(Transport):
    """Verification via a remote service over HTTP."""

    def __init__(
        self,
        endpoint: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        client: httpx.Client | None = None,
        *,
        max_retries: int = REMOTE_MAX_RETRIES,
        retry_base_delay_s: float = REMOTE_RETRY_BASE_DELAY_S,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout_ms = timeout_ms
        self._client = client or httpx.Client(timeout=timeout_ms / 1000.0)
        self._owns_client = client is None
        self._max_retries = max_retries
        self._retry_base_delay_s = retry_base_delay_s

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def health_check(self) -> bool:
        try:
            response = self._client.get(
                f"{self.endpoint}/health", timeout=HEALTH_TIMEOUT_S
            )
        except httpx.HTTPError as exc:
            logger.debug("Health check against %s failed: %s", self.endpoint, exc)
            return False
        return response.is_success

    def _post_with_retry(self, payload: dict[str, Any]) -> httpx.Response:
        """POST the GraphQL payload, retrying on 5xx only."""
        url = f"{self.endpoint}/graphql"
        for attempt in range(1 + self._max_retries):
            try:
                response = self._client.post(url, json=payload)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                if status_code >= 500 and attempt < self._max_retries:
                    delay = self._retry_base_delay_s * (2**attempt)
                    logger.info(
                        "Remote %d from %s (attempt %d/%d), retrying in %.1fs",
                        status_code,
                        url,
                        attempt + 1,
                        1 + self._max_retries,
                        delay,
                    )
                    time.sleep(delay)
                    continue
                raise RequestFailed(
                    f"Remote service returned HTTP {status_code}"
                ) from exc
            except httpx.TransportError as exc:
                raise ConnectionFailed(f"Cannot reach {url}: {exc}") from exc
            except httpx.HTTPError as exc:
                raise RequestFailed(f"Request to {url} failed: {exc}") from exc
        # The loop either returns or raises on its final attempt.
        raise AssertionError("unreachable")

    def verify(
        self,
        kind: ProverKind,
        content: str | bytes,
        filename: str | None = None,
        cancel_token: Any = None,
    ) -> ProofResult:
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as exc:
                # The GraphQL payload is text; altered proof bytes must not be sent.
                raise RequestFailed(
                    f"Proof content is not valid UTF-8 and cannot be sent remotely: {exc}"
                ) from exc

        payload = {
            "query": VERIFY_MUTATION,
            "variables": {"prover": kind.name, "content": content},
        }
        response = self._post_with_retry(payload)
        try:
            data = response.json()
        except ValueError as exc:
            raise ParseFailed(f"Remote response is not JSON: {exc}") from exc

        return parse_verify_response(data)
