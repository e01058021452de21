from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from .errors import ProvenanceError
from .models import VerificationVerdict

RULE = "=" * 50


class Summary(str, Enum):
    SAFE = "SAFE"  # verified and response digest matches
    PARTIAL = "PARTIAL"  # verified, response digest differs
    DANGER = "DANGER"


class EvidenceReport(BaseModel):
    summary: Summary
    technical_log: str


def summarize(verdict: VerificationVerdict) -> Summary:
    if not verdict.is_verified:
        return Summary.DANGER
    if not verdict.response_integrity_ok:
        return Summary.PARTIAL
    return Summary.SAFE


def _check(ok: bool, good: str, bad: str) -> str:
    return f"[OK] {good}" if ok else f"[FAIL] {bad}"


def _body_block(name: str, body: str) -> list[str]:
    # verbatim between markers: sha256 of the enclosed text is the local digest
    return [f"-----BEGIN {name} BODY-----", body, f"-----END {name} BODY-----"]


def render(verdict: VerificationVerdict) -> EvidenceReport:
    """Format a verdict as a status plus a plaintext log.

    The log carries every raw field needed to re-derive the verdict by hand:
    recompute sha256 of the saved bodies, compare with the signed text, and
    recover the signer from the signature.
    """
    summary = summarize(verdict)
    signature_data = json.dumps(
        {
            "signature": verdict.signature,
            "signing_address": verdict.signer_address,
            "signing_algo": verdict.signing_algo,
            "text": verdict.attested_text,
        },
        indent=2,
    )
    lines = [
        "Provenance Verification Log",
        f"API Key: {verdict.masked_credential}",
        f"Chat ID: {verdict.transaction_id}",
        f"Model ID: {verdict.model_id}",
        "",
        "--- Verifying Signature ---",
        f"Local Request Hash: {verdict.local_request_digest}",
        f"Local Response Hash: {verdict.local_response_digest}",
        f"Fetching signature from: {verdict.attestation_url or 'n/a'}",
        f"Signature Data: {signature_data}",
        "",
        "--- Comparison ---",
        "Original Request Body (Sent):",
        *_body_block("REQUEST", verdict.request_body),
        f"Local Request Hash:  {verdict.local_request_digest}",
        f"Remote Request Hash: {verdict.remote_request_digest}",
        _check(verdict.request_integrity_ok, "Request Integrity: Verified", "Request Hash Mismatch"),
        "",
        "Original Response Body (Received):",
        *_body_block("RESPONSE", verdict.response_body),
        f"Local Response Hash:  {verdict.local_response_digest}",
        f"Remote Response Hash: {verdict.remote_response_digest}",
        (
            "[OK] Response Integrity: Verified"
            if verdict.response_integrity_ok
            else "[WARN] Response Hash Mismatch (not part of the verdict; may be transport formatting)"
        ),
        "",
        "--- ECDSA Verification ---",
        f"Recovered Agent Address: {verdict.recovered_address}",
        f"Expected Agent Address:  {verdict.signer_address}",
        _check(verdict.identity_ok, "Signature Identity: Authenticated", "Signature Identity: FAILED"),
        "",
        RULE,
        f"STATUS: {summary.value}",
        RULE,
        (
            "[SAFE] What you sent was exactly what the model received."
            if verdict.request_integrity_ok
            else "[DANGER] Your request was tampered with in transit."
        ),
        (
            f"[SAFE] The response was attested by {verdict.signer_address}."
            if verdict.identity_ok
            else "[DANGER] The attestation signer could not be authenticated."
        ),
    ]
    if summary is Summary.PARTIAL:
        lines.append("[PARTIAL] The received response bytes differ from the attested response digest.")
    lines.append(
        "CONCLUSION: Cryptographically verified."
        if verdict.is_verified
        else "CONCLUSION: Verification failed."
    )
    lines.append(RULE)
    return EvidenceReport(summary=summary, technical_log="\n".join(lines))


def render_undetermined(transaction_id: str, error: ProvenanceError) -> str:
    """Status text when no verdict exists. Never claims tampering."""
    return "\n".join(
        [
            f"Chat ID: {transaction_id}",
            f"STATUS: UNDETERMINED ({error.code})",
            f"Reason: {error.message}",
            "Authenticity of this response could not be established.",
        ]
    )


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def report_filename(transaction_id: str) -> str:
    return f"verification-{_UNSAFE_CHARS.sub('_', transaction_id)}.txt"


def export_report(report: EvidenceReport, verdict: VerificationVerdict, directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    out = directory / report_filename(verdict.transaction_id)
    out.write_text(report.technical_log + "\n", encoding="utf-8", newline="")
    return out


__all__ = [
    "Summary",
    "EvidenceReport",
    "summarize",
    "render",
    "render_undetermined",
    "report_filename",
    "export_report",
]
