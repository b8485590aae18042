"""
Prover registry: the static catalog of supported theorem provers.

One row per ProverKind holds the tier, display name, executable name and
recognized file extensions. Every lookup is table indexing; nothing here
touches the filesystem or spawns processes.

Tiers describe how complete the backend integration is:
  tier 1, full support: Agda, Coq, Lean, Isabelle, Z3, CVC5
  tier 2, full support: Metamath, HOL Light, Mizar
  tier 3, stub support only: PVS, ACL2, HOL4
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ProverKind(Enum):
    """Supported provers, in registration order."""

    # Tier 1
    AGDA = "agda"
    COQ = "coq"
    LEAN = "lean"
    ISABELLE = "isabelle"
    Z3 = "z3"
    CVC5 = "cvc5"
    # Tier 2
    METAMATH = "metamath"
    HOL_LIGHT = "hol_light"
    MIZAR = "mizar"
    # Tier 3
    PVS = "pvs"
    ACL2 = "acl2"
    HOL4 = "hol4"

    @property
    def tier(self) -> int:
        return PROVERS[self].tier

    @property
    def display_name(self) -> str:
        return PROVERS[self].display_name

    @property
    def executable(self) -> str:
        return PROVERS[self].executable

    @property
    def file_extensions(self) -> tuple[str, ...]:
        return PROVERS[self].extensions

    @property
    def ordinal(self) -> int:
        """Position in registration order (0..11)."""
        return _ORDER.index(self)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> ProverKind | None:
        if 0 <= ordinal < len(_ORDER):
            return _ORDER[ordinal]
        return None


@dataclass(frozen=True)
class ProverInfo:
    """Registry row for one prover."""

    kind: ProverKind
    tier: int
    display_name: str
    executable: str
    extensions: tuple[str, ...]


_ROWS = [
    ProverInfo(ProverKind.AGDA, 1, "Agda", "agda", (".agda", ".lagda", ".lagda.md")),
    ProverInfo(ProverKind.COQ, 1, "Coq", "coqc", (".v",)),
    ProverInfo(ProverKind.LEAN, 1, "Lean 4", "lean", (".lean",)),
    ProverInfo(ProverKind.ISABELLE, 1, "Isabelle/HOL", "isabelle", (".thy",)),
    ProverInfo(ProverKind.Z3, 1, "Z3", "z3", (".smt2", ".z3")),
    ProverInfo(ProverKind.CVC5, 1, "CVC5", "cvc5", (".smt2", ".cvc5")),
    ProverInfo(ProverKind.METAMATH, 2, "Metamath", "metamath", (".mm",)),
    ProverInfo(ProverKind.HOL_LIGHT, 2, "HOL Light", "hol_light", (".ml",)),
    ProverInfo(ProverKind.MIZAR, 2, "Mizar", "mizar", (".miz",)),
    ProverInfo(ProverKind.PVS, 3, "PVS", "pvs", (".pvs",)),
    ProverInfo(ProverKind.ACL2, 3, "ACL2", "acl2", (".lisp", ".acl2")),
    ProverInfo(ProverKind.HOL4, 3, "HOL4", "hol4", (".sml",)),
]

PROVERS: dict[ProverKind, ProverInfo] = {row.kind: row for row in _ROWS}

_ORDER: tuple[ProverKind, ...] = tuple(ProverKind)

# Reverse map, first registration wins (".smt2" resolves to Z3, not CVC5).
_BY_EXTENSION: dict[str, ProverKind] = {}
for _row in _ROWS:
    for _ext in _row.extensions:
        _BY_EXTENSION.setdefault(_ext, _row.kind)


def tier(kind: ProverKind) -> int:
    return PROVERS[kind].tier


def display_name(kind: ProverKind) -> str:
    return PROVERS[kind].display_name


def executable(kind: ProverKind) -> str:
    return PROVERS[kind].executable


def file_extensions(kind: ProverKind) -> tuple[str, ...]:
    return PROVERS[kind].extensions


def from_extension(ext: str) -> ProverKind | None:
    """Return the first prover claiming ``ext`` (exact, case-sensitive match).

    The leading dot is part of the extension, and multi-part extensions such
    as ``.lagda.md`` only match as a whole.
    """
    return _BY_EXTENSION.get(ext)


def from_path(path: str | Path) -> ProverKind | None:
    """Detect a prover from a file name, trying the longest suffix first."""
    suffixes = Path(path).suffixes
    for start in range(len(suffixes)):
        kind = from_extension("".join(suffixes[start:]))
        if kind is not None:
            return kind
    return None


def count() -> int:
    return len(_ROWS)


def supported_provers() -> list[ProverInfo]:
    return list(_ROWS)
