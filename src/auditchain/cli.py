"""auditchain CLI entry point.

Usage: auditchain verify EXPORT.json [--hmac-key HEX]
       auditchain summary EXPORT.json

Exit status: 0 valid, 1 compromised, 2 unreadable or malformed export.
"""
import argparse
import json
import logging
import sys

from auditchain.crypto.export import load_chain, summarize
from auditchain.crypto.hasher import HmacSha256Digest
from auditchain.crypto.verifier import ChainVerifier
from auditchain.errors import ExportFormatError

log = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_COMPROMISED = 1
EXIT_UNREADABLE = 2


def _add_verify_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "verify",
        help="Recompute every hash in an exported chain.",
    )
    p.add_argument("path", help="Path to an exported chain document.")
    p.add_argument(
        "--hmac-key", default=None,
        help="Hex-encoded HMAC key, for chains built with HMAC-SHA256.",
    )


def _add_summary_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "summary",
        help="Print length, time range and head hash of an exported chain.",
    )
    p.add_argument("path", help="Path to an exported chain document.")


def _load(path: str):
    try:
        with open(path, "rb") as fh:
            return load_chain(fh.read())
    except OSError as exc:
        log.error("Cannot read %s: %s", path, exc)
    except ExportFormatError as exc:
        log.error("Malformed export %s: %s", path, exc)
    return None


def _run_verify(args: argparse.Namespace) -> int:
    digest = None
    if args.hmac_key is not None:
        try:
            digest = HmacSha256Digest(bytes.fromhex(args.hmac_key))
        except ValueError as exc:
            log.error("Invalid --hmac-key: %s", exc)
            return EXIT_UNREADABLE

    chain = _load(args.path)
    if chain is None:
        return EXIT_UNREADABLE

    result = ChainVerifier(digest).verify(chain)
    if result.valid:
        print(f"VALID ({result.entries_verified} entries)")
        return EXIT_VALID
    print(
        f"COMPROMISED at index {result.broken_at_index}: {result.reason.value}"
    )
    log.debug("%s", result.error_message)
    return EXIT_COMPROMISED


def _run_summary(args: argparse.Namespace) -> int:
    chain = _load(args.path)
    if chain is None:
        return EXIT_UNREADABLE
    print(json.dumps(summarize(chain).to_dict(), indent=2))
    return EXIT_VALID


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="auditchain",
        description="Inspect and verify exported tamper-evident audit chains.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_verify_parser(subparsers)
    _add_summary_parser(subparsers)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "verify":
        sys.exit(_run_verify(args))
    if args.command == "summary":
        sys.exit(_run_summary(args))
