from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import SecretStr

from .client.completion import MODELS, ChatMessage, CompletionClient, CompletionRequest
from .engine import VerificationEngine
from .errors import (
    AttestationUnavailable,
    CompletionError,
    MalformedAttestation,
    MalformedSignature,
)
from .hashing import digest_hex
from .models import TransactionRecord
from .report import export_report, render, render_undetermined
from .settings import settings

EXIT_VERIFIED = 0
EXIT_USAGE = 1
EXIT_NOT_VERIFIED = 2
EXIT_UNDETERMINED = 3
EXIT_MALFORMED = 4


def _api_key(args: argparse.Namespace) -> str:
    return args.api_key or settings.api_key()


def _run_verification(record: TransactionRecord, out: str | None, engine: VerificationEngine) -> int:
    try:
        verdict = asyncio.run(engine.verify(record))
    except AttestationUnavailable as e:
        print(render_undetermined(record.transaction_id, e), file=sys.stderr)
        return EXIT_UNDETERMINED
    except (MalformedAttestation, MalformedSignature) as e:
        print(render_undetermined(record.transaction_id, e), file=sys.stderr)
        return EXIT_MALFORMED
    report = render(verdict)
    print(report.technical_log)
    if out:
        path = export_report(report, verdict, Path(out))
        print(f"Wrote {path}")
    return EXIT_VERIFIED if verdict.is_verified else EXIT_NOT_VERIFIED


def cmd_hash(args: argparse.Namespace) -> int:
    print(digest_hex(Path(args.input).read_bytes()))
    return 0


def cmd_verify(args: argparse.Namespace, engine: VerificationEngine | None = None) -> int:
    key = _api_key(args)
    if not key:
        print("No API key: pass --api-key or set NEAR_API_KEY", file=sys.stderr)
        return EXIT_USAGE
    record = TransactionRecord(
        request_body=Path(args.request).read_bytes(),
        response_body=Path(args.response).read_bytes(),
        transaction_id=args.chat_id,
        model_id=args.model,
        credential=SecretStr(key),
    )
    return _run_verification(record, args.out, engine or VerificationEngine())


def cmd_ask(
    args: argparse.Namespace,
    completions: CompletionClient | None = None,
    engine: VerificationEngine | None = None,
) -> int:
    key = _api_key(args)
    if not key:
        print("No API key: pass --api-key or set NEAR_API_KEY", file=sys.stderr)
        return EXIT_USAGE
    request = CompletionRequest(
        model=MODELS.get(args.model, args.model),
        messages=[ChatMessage(role="user", content=args.prompt)],
        max_tokens=args.max_tokens,
    )
    completions = completions or CompletionClient()
    try:
        result = asyncio.run(completions.generate_completion(key, request))
    except CompletionError as e:
        print(f"Completion failed: {e.message}\n{e.body}", file=sys.stderr)
        return EXIT_USAGE
    print(result.content)
    print()
    return _run_verification(result.transaction, args.out, engine or VerificationEngine())


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rpvp-cli",
        description="Verify enclave attestations for inference responses",
    )
    p.add_argument("--api-key", help="Bearer credential (default: NEAR_API_KEY)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_hash = sub.add_parser("hash", help="Print sha256 hex digest of a file's exact bytes")
    p_hash.add_argument("--input", required=True)
    p_hash.set_defaults(func=cmd_hash)

    p_verify = sub.add_parser("verify", help="Verify a saved request/response pair")
    p_verify.add_argument("--request", required=True, help="File holding the exact request body")
    p_verify.add_argument("--response", required=True, help="File holding the exact response body")
    p_verify.add_argument("--chat-id", required=True)
    p_verify.add_argument("--model", required=True)
    p_verify.add_argument(
        "--out", nargs="?", const=str(settings.report_dir), help="Export the technical log (default dir: REPORT_DIR)"
    )
    p_verify.set_defaults(func=cmd_verify)

    p_ask = sub.add_parser("ask", help="Run a completion and verify it end to end")
    p_ask.add_argument("--prompt", required=True)
    p_ask.add_argument("--model", default="fast", help="Model slug or preset (fast, smart)")
    p_ask.add_argument("--max-tokens", type=int, default=None)
    p_ask.add_argument(
        "--out", nargs="?", const=str(settings.report_dir), help="Export the technical log (default dir: REPORT_DIR)"
    )
    p_ask.set_defaults(func=cmd_ask)
    return p


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
