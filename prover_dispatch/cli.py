"""
CLI entry point for prover dispatch.

Usage:
    python -m prover_dispatch verify proofs/Basic.lean
    python -m prover_dispatch verify query.smt2 --prover cvc5 --timeout-ms 60000
    python -m prover_dispatch list
    python -m prover_dispatch health --endpoint http://localhost:8000

The CLI is a thin wrapper around ProverClient. Exit codes: 0 when the proof
verified, 1 for any other verdict, 2 for usage or lookup errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from prover_dispatch import __version__
from prover_dispatch.config import ClientConfig
from prover_dispatch.errors import ProverError, ProverNotFound
from prover_dispatch.registry import ProverKind, supported_provers
from prover_dispatch.runner.orchestrator import ProverClient


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prover_dispatch",
        description="Verify proofs with any of twelve theorem provers and SMT solvers.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    verify = sub.add_parser("verify", help="Verify a proof file.")
    verify.add_argument("file", type=Path, help="Proof file to verify.")
    verify.add_argument(
        "--prover",
        choices=[kind.value for kind in ProverKind],
        default=None,
        help="Prover to use. Detected from the file extension when omitted.",
    )
    verify.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Prover deadline in milliseconds (default: 300000).",
    )
    verify.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Remote verification service URL.",
    )
    verify.add_argument(
        "--no-fallback",
        action="store_true",
        help="Do not run the prover locally when the remote service is unavailable.",
    )
    verify.add_argument("--json", action="store_true", help="Print the result as JSON.")

    sub.add_parser("list", help="List supported provers.")

    health = sub.add_parser("health", help="Check the remote verification service.")
    health.add_argument("--endpoint", type=str, default=None)

    return parser


def _cmd_list() -> int:
    print(f"{'PROVER':<10} {'TIER':<5} {'EXECUTABLE':<10} {'NAME':<14} EXTENSIONS")
    for info in supported_provers():
        print(
            f"{info.kind.value:<10} {info.tier:<5} {info.executable:<10} "
            f"{info.display_name:<14} {' '.join(info.extensions)}"
        )
    return 0


def _cmd_health(args: argparse.Namespace, config: ClientConfig) -> int:
    endpoint = args.endpoint or config.endpoint
    if not endpoint:
        print("Error: no endpoint configured (use --endpoint or PROVER_DISPATCH_ENDPOINT)",
              file=sys.stderr)
        return 2
    with ProverClient(endpoint=endpoint) as client:
        healthy = client.health_check()
    print(f"{endpoint}: {'healthy' if healthy else 'unavailable'}")
    return 0 if healthy else 1


def _cmd_verify(args: argparse.Namespace, config: ClientConfig) -> int:
    if not args.file.exists():
        print(f"Error: proof file not found: {args.file}", file=sys.stderr)
        return 2

    timeout_ms = config.timeout_ms if args.timeout_ms is None else args.timeout_ms
    try:
        client = ProverClient(
            endpoint=args.endpoint or config.endpoint,
            timeout_ms=timeout_ms,
            use_subprocess_fallback=config.use_subprocess_fallback and not args.no_fallback,
            executables=config.executables,
        )
    except ProverError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    kind = ProverKind(args.prover) if args.prover else None

    with client:
        try:
            result = client.verify_file(args.file, kind)
        except ProverNotFound as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        except ProverError as e:
            print(f"Verification error: {e}", file=sys.stderr)
            return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(result.summary())
        if result.prover_output:
            print()
            print(result.prover_output.rstrip())
    return 0 if result.passed else 1


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        config = ClientConfig.from_env()
    except ProverError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.command == "list":
        print(f"prover_dispatch v{__version__}")
        code = _cmd_list()
    elif args.command == "health":
        code = _cmd_health(args, config)
    else:
        code = _cmd_verify(args, config)
    sys.exit(code)


if __name__ == "__main__":
    main()
