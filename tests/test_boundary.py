"""Tests for the handle-based embedding boundary."""

from __future__ import annotations

import sys
import tempfile

import pytest

from prover_dispatch import boundary
from prover_dispatch.models import ProofStatus


@pytest.fixture
def handle():
    h = boundary.prover_init("")
    assert h is not None
    yield h
    boundary.prover_shutdown(h)


class TestBoundary:
    def test_count_and_tiers(self):
        assert boundary.prover_count() == 12
        assert [boundary.prover_tier(i) for i in range(12)] == [1] * 6 + [2] * 3 + [3] * 3

    @pytest.mark.parametrize("prover_id", [-1, 12, 255])
    def test_tier_out_of_range(self, prover_id):
        assert boundary.prover_tier(prover_id) == 0

    def test_handles_are_independent(self):
        a = boundary.prover_init("")
        b = boundary.prover_init("")
        try:
            assert a != b
        finally:
            boundary.prover_shutdown(a)
            boundary.prover_shutdown(b)

    def test_unknown_handle(self):
        assert boundary.prover_verify(-42, 4, b"(check-sat)", 11) == ProofStatus.UNKNOWN.code
        assert boundary.prover_health_check(-42) is False

    def test_shutdown_invalidates_handle(self):
        h = boundary.prover_init("")
        boundary.prover_shutdown(h)
        assert boundary.prover_verify(h, 4, b"(check-sat)", 11) == ProofStatus.UNKNOWN.code
        boundary.prover_shutdown(h)

    @pytest.mark.parametrize("prover_id", [-1, 12, 200])
    def test_prover_id_out_of_range(self, handle, prover_id):
        assert boundary.prover_verify(handle, prover_id, b"x", 1) == ProofStatus.ERROR.code

    def test_bad_length(self, handle):
        assert boundary.prover_verify(handle, 4, b"abc", 10) == ProofStatus.ERROR.code

    def test_unusable_temp_directory_is_an_error_code(self, handle, tmp_path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path / "missing"))
        assert boundary.prover_verify(handle, 4, b"(check-sat)", 11) == ProofStatus.ERROR.code

    def test_health_without_endpoint(self, handle):
        assert boundary.prover_health_check(handle) is False

    @pytest.mark.skipif(sys.platform == "win32", reason="fake provers are POSIX shell scripts")
    def test_verify_status_codes(self, handle, fake_prover, tmp_path):
        seen = tmp_path / "seen.smt2"
        fake_prover("z3", f'cat "$1" > "{seen}"')
        assert boundary.prover_verify(handle, 4, b"(check-sat)(exit)", 11) == 0
        assert seen.read_bytes() == b"(check-sat)"

        fake_prover("coqc", "exit 1")
        assert boundary.prover_verify(handle, 1, b"Qed.", 4) == ProofStatus.FAILED.code
