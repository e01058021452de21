from __future__ import annotations

import logging
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from ..errors import AttestationUnavailable, MalformedAttestation
from ..models import AttestationRecord
from ..settings import settings

# The service can sign with several algorithms; ecdsa is the one we can recover.
SIGNING_ALGO = "ecdsa"


def build_attestation_url(base_url: str, transaction_id: str, model_id: str) -> str:
    """Return ``<base>/signature/<id>?model=<model>&signing_algo=ecdsa``.

    Deterministic for a given (base, id, model). Model slugs such as
    ``deepseek-ai/DeepSeek-V3.1`` keep their slash.
    """
    query = urlencode({"model": model_id, "signing_algo": SIGNING_ALGO}, safe="/")
    return f"{base_url.rstrip('/')}/signature/{quote(transaction_id, safe='')}?{query}"


class AttestationClient:
    """Fetches the signed attestation for one completed transaction.

    A single attempt per call, no caching. Each call opens its own
    ``httpx.AsyncClient`` so an abandoned fetch only releases its own request.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.near_api_base
        self.timeout = timeout if timeout is not None else settings.attestation_timeout_seconds
        self._transport = transport

    def url_for(self, transaction_id: str, model_id: str) -> str:
        return build_attestation_url(self.base_url, transaction_id, model_id)

    async def fetch_attestation(
        self, transaction_id: str, model_id: str, credential: str
    ) -> AttestationRecord:
        url = self.url_for(transaction_id, model_id)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            logging.warning("Attestation fetch timed out after %.1fs for %s", self.timeout, transaction_id)
            raise AttestationUnavailable(f"Attestation fetch timed out: {e}") from e
        except httpx.HTTPError as e:
            logging.warning("Attestation fetch failed for %s: %s", transaction_id, e)
            raise AttestationUnavailable(f"Attestation fetch failed: {e}") from e

        if not r.is_success:
            logging.warning("Signature fetch failed: %s", r.status_code)
            raise AttestationUnavailable(
                f"Attestation endpoint returned HTTP {r.status_code}",
                status_code=r.status_code,
                body=r.text,
            )
        return parse_attestation(r.content)


def parse_attestation(body: bytes | str) -> AttestationRecord:
    """Strictly validate an attestation response body."""
    try:
        return AttestationRecord.model_validate_json(body)
    except ValidationError as e:
        raise MalformedAttestation(
            "Attestation response does not match {text, signature, signing_address}",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


__all__ = ["AttestationClient", "build_attestation_url", "parse_attestation", "SIGNING_ALGO"]
