"""Tests for the per-prover invocation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from prover_dispatch.errors import ProverNotFound
from prover_dispatch.registry import ProverKind
from prover_dispatch.runner.invocation import (
    INVOCATION_RULES,
    DirectoryBuild,
    FlaggedFilePath,
    SingleFilePath,
    StdinPipe,
    build_invocation,
)


class TestInvocationTable:
    def test_every_kind_has_a_rule(self):
        assert set(INVOCATION_RULES) == set(ProverKind)

    def test_rule_shapes(self):
        assert isinstance(INVOCATION_RULES[ProverKind.ISABELLE], DirectoryBuild)
        assert isinstance(INVOCATION_RULES[ProverKind.PVS], FlaggedFilePath)
        assert isinstance(INVOCATION_RULES[ProverKind.ACL2], StdinPipe)
        assert isinstance(INVOCATION_RULES[ProverKind.Z3], SingleFilePath)


class TestBuildInvocation:
    def test_single_file(self):
        inv = build_invocation(ProverKind.Z3, "/tmp/q.smt2")
        assert inv.argv == ("z3", "/tmp/q.smt2")
        assert inv.stdin_path is None

    def test_coq_uses_coqc(self):
        assert build_invocation(ProverKind.COQ, "A.v").argv == ("coqc", "A.v")

    def test_isabelle_builds_the_session_directory(self):
        inv = build_invocation(ProverKind.ISABELLE, "/tmp/sess/A.thy")
        assert inv.argv == ("isabelle", "build", "-d", "/tmp/sess", "-a")

    def test_isabelle_bare_filename_uses_cwd(self):
        inv = build_invocation(ProverKind.ISABELLE, "A.thy")
        assert inv.argv == ("isabelle", "build", "-d", ".", "-a")

    def test_pvs_batch_flag(self):
        inv = build_invocation(ProverKind.PVS, "/w/t.pvs")
        assert inv.argv == ("pvs", "-batch", "/w/t.pvs")

    def test_acl2_reads_stdin(self):
        inv = build_invocation(ProverKind.ACL2, Path("/w/book.lisp"))
        assert inv.argv == ("acl2",)
        assert inv.stdin_path == Path("/w/book.lisp")

    def test_executable_override(self):
        inv = build_invocation(
            ProverKind.ISABELLE,
            "/s/A.thy",
            executables={ProverKind.ISABELLE: "/opt/isabelle/bin/isabelle"},
        )
        assert inv.argv == ("/opt/isabelle/bin/isabelle", "build", "-d", "/s", "-a")

    def test_missing_rule(self):
        rules = {k: v for k, v in INVOCATION_RULES.items() if k is not ProverKind.HOL4}
        with pytest.raises(ProverNotFound):
            build_invocation(ProverKind.HOL4, "x.sml", rules=rules)
