"""Tests for the command line front end."""

from __future__ import annotations

import json
import sys

import pytest

from prover_dispatch.cli import main


def _run(argv) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("PROVER_DISPATCH_ENDPOINT", "PROVER_DISPATCH_TIMEOUT_MS",
                "PROVER_DISPATCH_FALLBACK"):
        monkeypatch.delenv(key, raising=False)


class TestCli:
    def test_list(self, capsys):
        assert _run(["list"]) == 0
        out = capsys.readouterr().out
        assert "hol_light" in out
        assert ".lagda.md" in out

    def test_missing_file(self, tmp_path):
        assert _run(["verify", str(tmp_path / "absent.v")]) == 2

    def test_unknown_extension(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("")
        assert _run(["verify", str(notes)]) == 2

    def test_health_without_endpoint(self):
        assert _run(["health"]) == 2

    @pytest.mark.parametrize("timeout", ["0", "-5"])
    def test_bad_timeout_is_a_usage_error(self, tmp_path, capsys, timeout):
        proof = tmp_path / "query.smt2"
        proof.write_text("(check-sat)")
        assert _run(["verify", str(proof), "--timeout-ms", timeout]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_unknown_executable_override_is_a_usage_error(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("PROVER_DISPATCH_FOO_BIN", "/opt/foo/bin/foo")
        proof = tmp_path / "query.smt2"
        proof.write_text("(check-sat)")
        assert _run(["verify", str(proof)]) == 2
        assert "Configuration error" in capsys.readouterr().err

    @pytest.mark.skipif(sys.platform == "win32", reason="fake provers are POSIX shell scripts")
    def test_verify_json(self, fake_prover, tmp_path, capsys):
        fake_prover("lean", "echo checked")
        proof = tmp_path / "Basic.lean"
        proof.write_text("theorem t : True := trivial\n")
        assert _run(["verify", str(proof), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "verified"
        assert payload["prover_output"].strip() == "checked"

    @pytest.mark.skipif(sys.platform == "win32", reason="fake provers are POSIX shell scripts")
    def test_verify_failure_exit_code(self, fake_prover, tmp_path, capsys):
        fake_prover("hol4", "echo 'Exception raised' >&2\nexit 1")
        proof = tmp_path / "fooScript.sml"
        proof.write_text("val _ = new_theory \"foo\";\n")
        assert _run(["verify", str(proof)]) == 1
        assert "FAILED: Proof failed" in capsys.readouterr().out
