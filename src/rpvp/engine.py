from __future__ import annotations

import logging
import re

from .client.attestation import AttestationClient
from .errors import MalformedAttestation
from .hashing import digest_hex, normalize_hex
from .models import TransactionRecord, VerificationVerdict
from .signing import recover_address

HEX_RE = re.compile(r"[0-9a-fA-F]+")


def split_attested_text(text: str) -> tuple[str, str]:
    """Split ``"<req-hex>:<resp-hex>"`` into its two digests.

    Exactly one separator and two non-empty hex halves, otherwise
    MalformedAttestation.
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise MalformedAttestation(
            f"Attested text must contain exactly one ':' separator, found {len(parts) - 1}",
            details={"text": text},
        )
    req, resp = parts
    for name, value in (("request", req), ("response", resp)):
        if not value or not HEX_RE.fullmatch(value):
            raise MalformedAttestation(
                f"Attested {name} digest is not a hex string",
                details={"text": text},
            )
    return req, resp


class VerificationEngine:
    """Checks one transaction against its remote attestation.

    Holds no per-call state: one engine can serve concurrent verifications.
    Errors from the attestation fetch and signature recovery propagate
    unchanged; only hash and identity mismatches end up in the verdict.
    """

    def __init__(self, attestation_client: AttestationClient | None = None):
        self.attestation_client = attestation_client or AttestationClient()

    async def verify(self, record: TransactionRecord) -> VerificationVerdict:
        local_req = digest_hex(record.request_body)
        local_resp = digest_hex(record.response_body)

        attestation = await self.attestation_client.fetch_attestation(
            record.transaction_id,
            record.model_id,
            record.credential.get_secret_value(),
        )

        remote_req, remote_resp = split_attested_text(attestation.text)
        request_ok = local_req == normalize_hex(remote_req)
        response_ok = local_resp == normalize_hex(remote_resp)
        if not request_ok:
            logging.warning("Request hash mismatch local=%s remote=%s", local_req, remote_req)
        if not response_ok:
            # Transport re-encoding (line endings, streaming) can alter the
            # response bytes; the signature still binds the request digest.
            logging.warning("Response hash mismatch local=%s remote=%s", local_resp, remote_resp)

        recovered = recover_address(attestation.text, attestation.signature)
        identity_ok = recovered.lower() == attestation.signer_address.lower()

        return VerificationVerdict(
            request_integrity_ok=request_ok,
            response_integrity_ok=response_ok,
            identity_ok=identity_ok,
            is_verified=request_ok and identity_ok,
            local_request_digest=local_req,
            remote_request_digest=normalize_hex(remote_req),
            local_response_digest=local_resp,
            remote_response_digest=normalize_hex(remote_resp),
            recovered_address=recovered,
            signer_address=attestation.signer_address,
            attested_text=attestation.text,
            signature=attestation.signature,
            signing_algo=attestation.signing_algo,
            request_body=record.request_body.decode("utf-8", errors="replace"),
            response_body=record.response_body.decode("utf-8", errors="replace"),
            transaction_id=record.transaction_id,
            model_id=record.model_id,
            masked_credential=record.masked_credential(),
            attestation_url=self.attestation_client.url_for(record.transaction_id, record.model_id),
        )


async def verify_transaction(
    record: TransactionRecord, client: AttestationClient | None = None
) -> VerificationVerdict:
    return await VerificationEngine(client).verify(record)


__all__ = ["VerificationEngine", "verify_transaction", "split_attested_text"]
