"""Tests for the prover registry — tiers, names, extensions, reverse lookup."""

from __future__ import annotations

from collections import Counter

import pytest

from prover_dispatch import registry
from prover_dispatch.registry import ProverKind


class TestRegistryTable:
    def test_count(self):
        assert registry.count() == 12
        assert len(ProverKind) == 12
        assert len(registry.supported_provers()) == 12

    def test_tier_partition(self):
        tiers = Counter(registry.tier(kind) for kind in ProverKind)
        assert tiers == {1: 6, 2: 3, 3: 3}

    def test_tier_examples(self):
        assert ProverKind.Z3.tier == 1
        assert ProverKind.METAMATH.tier == 2
        assert ProverKind.PVS.tier == 3

    def test_display_names_and_executables(self):
        assert registry.display_name(ProverKind.LEAN) == "Lean 4"
        assert registry.display_name(ProverKind.ISABELLE) == "Isabelle/HOL"
        assert registry.executable(ProverKind.COQ) == "coqc"
        assert registry.executable(ProverKind.HOL_LIGHT) == "hol_light"

    def test_every_kind_has_extensions(self):
        for kind in ProverKind:
            exts = registry.file_extensions(kind)
            assert exts, kind
            assert all(ext.startswith(".") for ext in exts)

    def test_executables_unique(self):
        names = [registry.executable(kind) for kind in ProverKind]
        assert len(names) == len(set(names))

    def test_ordinals(self):
        assert ProverKind.AGDA.ordinal == 0
        assert ProverKind.HOL4.ordinal == 11
        assert ProverKind.from_ordinal(4) is ProverKind.Z3
        assert ProverKind.from_ordinal(12) is None
        assert ProverKind.from_ordinal(-1) is None


class TestFromExtension:
    def test_round_trip(self):
        for kind in ProverKind:
            for ext in kind.file_extensions:
                found = registry.from_extension(ext)
                if ext == ".smt2":
                    # Shared by Z3 and CVC5; first registration wins.
                    assert found is ProverKind.Z3
                else:
                    assert found is kind, ext

    def test_only_smt2_is_shared(self):
        claims = Counter(ext for kind in ProverKind for ext in kind.file_extensions)
        assert [ext for ext, n in claims.items() if n > 1] == [".smt2"]

    @pytest.mark.parametrize("ext", [".xyz", "", ".V", "v", ".md", ".lagda.", "lean"])
    def test_unknown_extensions(self, ext):
        assert registry.from_extension(ext) is None

    def test_multi_part_extension(self):
        assert registry.from_extension(".lagda.md") is ProverKind.AGDA

    def test_known_examples(self):
        assert registry.from_extension(".v") is ProverKind.COQ
        assert registry.from_extension(".lean") is ProverKind.LEAN
        assert registry.from_extension(".cvc5") is ProverKind.CVC5


class TestFromPath:
    def test_longest_suffix_first(self):
        assert registry.from_path("docs/Intro.lagda.md") is ProverKind.AGDA

    def test_dotted_stem(self):
        assert registry.from_path("v1.2/Main.v2.lean") is ProverKind.LEAN

    def test_no_match(self):
        assert registry.from_path("README.md") is None
        assert registry.from_path("Makefile") is None
