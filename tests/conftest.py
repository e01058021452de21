import json

import httpx
import pytest

from rpvp.client.attestation import AttestationClient
from rpvp.engine import VerificationEngine
from rpvp.hashing import digest_hex
from rpvp.signing import sign_message

# Well-known secp256k1 test vector
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
OTHER_KEY = "0x" + "11" * 32

API_BASE = "https://attest.test/v1"
API_KEY = "sk-test-0123456789abcdef"


def signed_attestation(request_body, response_body, key=PRIVATE_KEY, address=ADDRESS, text=None):
    text = text if text is not None else f"{digest_hex(request_body)}:{digest_hex(response_body)}"
    return {
        "text": text,
        "signature": sign_message(text, key),
        "signing_address": address,
        "signing_algo": "ecdsa",
    }


class StubAttestationService:
    """Serves a fixed attestation and records every request it sees."""

    def __init__(self, payload=None, status_code=200, raw=None, exc=None):
        self.payload = payload
        self.status_code = status_code
        self.raw = raw
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"stub {self.exc.__name__}", request=request)
        payload = self.payload() if callable(self.payload) else self.payload
        body = self.raw if self.raw is not None else json.dumps(payload)
        return httpx.Response(self.status_code, content=body)

    def engine(self) -> VerificationEngine:
        return VerificationEngine(self.client())

    def client(self) -> AttestationClient:
        return AttestationClient(base_url=API_BASE, timeout=1.0, transport=httpx.MockTransport(self))


@pytest.fixture
def stub_service():
    return StubAttestationService
