from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr, StrictStr, field_validator


class TransactionRecord(BaseModel):
    """Inputs of one verification: the exact bodies exchanged with the API."""

    model_config = ConfigDict(frozen=True)

    request_body: bytes
    response_body: bytes
    transaction_id: str
    model_id: str
    # bearer token for the attestation fetch only; never hashed or compared
    credential: SecretStr = SecretStr("")

    def masked_credential(self) -> str:
        return mask_credential(self.credential.get_secret_value())


class AttestationRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: StrictStr = Field(min_length=1)  # "<hex-request-hash>:<hex-response-hash>"
    signature: StrictStr = Field(min_length=1)
    signer_address: StrictStr = Field(alias="signing_address", min_length=1)
    signing_algo: str | None = None

    @field_validator("signing_algo", mode="before")
    @classmethod
    def _lax_signing_algo(cls, value):
        # informational only; an odd value must not reject the attestation
        return value if isinstance(value, str) else None


class VerificationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_integrity_ok: bool
    response_integrity_ok: bool  # informational, does not gate is_verified
    identity_ok: bool
    is_verified: bool
    local_request_digest: str
    remote_request_digest: str
    local_response_digest: str
    remote_response_digest: str
    recovered_address: str
    signer_address: str
    attested_text: str
    signature: str
    signing_algo: str | None = None  # as returned by the attestation service
    # context evidence for the exported log
    request_body: str = ""
    response_body: str = ""
    transaction_id: str
    model_id: str
    masked_credential: str
    attestation_url: str | None = None


def mask_credential(value: str | None) -> str:
    """Keep only the first and last five characters of a secret.

    Values too short to mask safely are hidden entirely.
    """
    if not value:
        return "HIDDEN"
    if len(value) <= 12:
        return "***"
    return f"{value[:5]}...{value[-5:]}"


__all__ = ["TransactionRecord", "AttestationRecord", "VerificationVerdict", "mask_credential"]
