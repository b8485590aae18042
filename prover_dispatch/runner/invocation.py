"""
invocation.py — Per-prover invocation rules.

Responsibility: Turn (prover kind, resolved file path) into the argument
vector and stdin wiring used to spawn the prover. One rule per ProverKind,
kept in INVOCATION_RULES; the orchestrator never branches on prover identity.

Rule shapes:
  SingleFilePath   `<exe> <file>` (most solvers and checkers)
  DirectoryBuild   `<exe> build -d <dir-of-file> -a` (Isabelle builds
                   sessions from ROOT files, not individual .thy files)
  FlaggedFilePath  `<exe> <flags...> <file>` (PVS needs -batch)
  StdinPipe        `<exe>` with the file connected to stdin (ACL2 reads
                   events from its input stream)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from prover_dispatch.errors import ProverNotFound
from prover_dispatch.registry import ProverKind


@dataclass(frozen=True)
class Invocation:
    """A fully resolved command, ready for the execution engine."""

    argv: tuple[str, ...]
    stdin_path: Optional[Path] = None


@dataclass(frozen=True)
class SingleFilePath:
    def build(self, exe: str, file_path: str) -> Invocation:
        return Invocation(argv=(exe, file_path))


@dataclass(frozen=True)
class DirectoryBuild:
    subcommand: tuple[str, ...] = ("build",)
    dir_flag: str = "-d"
    trailing: tuple[str, ...] = ("-a",)

    def build(self, exe: str, file_path: str) -> Invocation:
        directory = os.path.dirname(file_path) or "."
        return Invocation(
            argv=(exe, *self.subcommand, self.dir_flag, directory, *self.trailing)
        )


@dataclass(frozen=True)
class FlaggedFilePath:
    flags: tuple[str, ...] = field(default_factory=tuple)

    def build(self, exe: str, file_path: str) -> Invocation:
        return Invocation(argv=(exe, *self.flags, file_path))


@dataclass(frozen=True)
class StdinPipe:
    def build(self, exe: str, file_path: str) -> Invocation:
        return Invocation(argv=(exe,), stdin_path=Path(file_path))


InvocationRule = Union[SingleFilePath, DirectoryBuild, FlaggedFilePath, StdinPipe]


INVOCATION_RULES: dict[ProverKind, InvocationRule] = {
    ProverKind.AGDA: SingleFilePath(),
    ProverKind.COQ: SingleFilePath(),
    ProverKind.LEAN: SingleFilePath(),
    ProverKind.ISABELLE: DirectoryBuild(),
    ProverKind.Z3: SingleFilePath(),
    ProverKind.CVC5: SingleFilePath(),
    ProverKind.METAMATH: SingleFilePath(),
    ProverKind.HOL_LIGHT: SingleFilePath(),
    ProverKind.MIZAR: SingleFilePath(),
    ProverKind.PVS: FlaggedFilePath(flags=("-batch",)),
    ProverKind.ACL2: StdinPipe(),
    ProverKind.HOL4: SingleFilePath(),
}


def build_invocation(
    kind: ProverKind,
    file_path: str | Path,
    *,
    executables: Mapping[ProverKind, str] | None = None,
    rules: Mapping[ProverKind, InvocationRule] | None = None,
) -> Invocation:
    """
    Build the invocation for ``kind`` against ``file_path``.

    Args:
        kind: Which prover to run.
        file_path: Resolved path of the proof file.
        executables: Optional per-prover executable overrides (e.g. absolute
            paths). The registry executable name is used otherwise.
        rules: Rule table to consult. Defaults to INVOCATION_RULES.

    Raises:
        ProverNotFound: if the table has no rule for ``kind``.
    """
    table = INVOCATION_RULES if rules is None else rules
    rule = table.get(kind)
    if rule is None:
        raise ProverNotFound(f"No invocation rule for prover {kind.value!r}")

    exe = kind.executable
    if executables and kind in executables:
        exe = executables[kind]

    return rule.build(exe, str(file_path))
