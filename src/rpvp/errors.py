"""
Exception hierarchy for provenance verification.

Hash and identity mismatches are not errors; they are encoded in the
verdict. These exceptions mean a verdict could not be computed at all.
"""

from __future__ import annotations

from typing import Any


class ProvenanceError(Exception):
    """Base exception for all verification errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "PROVENANCE_ERROR"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class AttestationUnavailable(ProvenanceError):
    """Attestation endpoint failed or could not be reached.

    Recoverable: callers report "verification undetermined", never tampering.
    ``status_code`` is None for timeouts and transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(
            message,
            code="ATTESTATION_UNAVAILABLE",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class MalformedAttestation(ProvenanceError):
    """Attestation response violates the documented shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="MALFORMED_ATTESTATION", details=details)


class MalformedSignature(ProvenanceError):
    """Signature bytes cannot be parsed or recovered."""

    def __init__(self, message: str, signature: str | None = None):
        super().__init__(
            message,
            code="MALFORMED_SIGNATURE",
            details={"signature": signature},
        )


class CompletionError(ProvenanceError):
    """Completion endpoint returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(
            message,
            code="COMPLETION_FAILED",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


__all__ = [
    "ProvenanceError",
    "AttestationUnavailable",
    "MalformedAttestation",
    "MalformedSignature",
    "CompletionError",
]
