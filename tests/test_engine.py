import asyncio

import pytest
from pydantic import SecretStr

from conftest import ADDRESS, API_KEY, OTHER_KEY, PRIVATE_KEY, signed_attestation
from rpvp.engine import split_attested_text, verify_transaction
from rpvp.errors import AttestationUnavailable, MalformedAttestation, MalformedSignature
from rpvp.hashing import digest_hex
from rpvp.models import TransactionRecord

REQUEST = b'{"a":1}'
RESPONSE = b'{"b":2}'


def _record(request=REQUEST, response=RESPONSE, chat_id="chat-1"):
    return TransactionRecord(
        request_body=request,
        response_body=response,
        transaction_id=chat_id,
        model_id="org/model",
        credential=SecretStr(API_KEY),
    )


def test_end_to_end_verified(stub_service):
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert verdict.local_request_digest == digest_hex(b'{"a":1}')
    assert verdict.request_integrity_ok
    assert verdict.response_integrity_ok
    assert verdict.identity_ok
    assert verdict.is_verified
    assert verdict.recovered_address == ADDRESS
    assert verdict.transaction_id == "chat-1"
    assert verdict.masked_credential == "sk-te...bcdef"
    assert verdict.attestation_url.endswith("/signature/chat-1?model=org/model&signing_algo=ecdsa")


def test_response_mismatch_does_not_gate_verdict(stub_service):
    # Known limitation: a substituted response with the original request
    # still verifies; only response_integrity_ok exposes it.
    text = f"{digest_hex(REQUEST)}:{digest_hex(b'something else')}"
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE, text=text))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert verdict.request_integrity_ok
    assert verdict.identity_ok
    assert not verdict.response_integrity_ok
    assert verdict.is_verified


def test_signer_address_compared_case_insensitively(stub_service):
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE, address=ADDRESS.lower()))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert verdict.identity_ok
    assert verdict.is_verified


def test_uppercase_remote_digest_matches(stub_service):
    text = f"{digest_hex(REQUEST).upper()}:{digest_hex(RESPONSE).upper()}"
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE, text=text))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert verdict.request_integrity_ok and verdict.response_integrity_ok
    assert verdict.remote_request_digest == digest_hex(REQUEST)
    assert verdict.attested_text == text


def test_request_mismatch_is_negative_verdict(stub_service):
    # signature is valid and self-consistent, but binds another request
    svc = stub_service(payload=signed_attestation(b'{"a": 1}', RESPONSE))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert not verdict.request_integrity_ok
    assert verdict.identity_ok
    assert not verdict.is_verified


def test_identity_mismatch_is_negative_verdict(stub_service):
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE, key=OTHER_KEY, address=ADDRESS))
    verdict = asyncio.run(svc.engine().verify(_record()))
    assert verdict.request_integrity_ok
    assert not verdict.identity_ok
    assert not verdict.is_verified
    assert verdict.recovered_address != ADDRESS


@pytest.mark.parametrize("status", [404, 500])
def test_unavailable_propagates(stub_service, status):
    svc = stub_service(raw="{}", status_code=status)
    with pytest.raises(AttestationUnavailable):
        asyncio.run(svc.engine().verify(_record()))


@pytest.mark.parametrize("text", ["a" * 64, "a" * 64 + ":" + "b" * 64 + ":" + "c" * 64, ":" + "b" * 64, "zz:aa"])
def test_malformed_text_propagates(stub_service, text):
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE, text=text))
    with pytest.raises(MalformedAttestation):
        asyncio.run(svc.engine().verify(_record()))


def test_malformed_signature_propagates(stub_service):
    payload = signed_attestation(REQUEST, RESPONSE)
    payload["signature"] = payload["signature"][:-4]
    svc = stub_service(payload=payload)
    with pytest.raises(MalformedSignature):
        asyncio.run(svc.engine().verify(_record()))


def test_split_attested_text():
    assert split_attested_text("ab:CD") == ("ab", "CD")
    with pytest.raises(MalformedAttestation):
        split_attested_text("abcd")
    with pytest.raises(MalformedAttestation):
        split_attested_text("ab:")


def test_concurrent_verifications_are_independent(stub_service):
    bodies = [(f'{{"n":{i}}}'.encode(), f'{{"r":{i}}}'.encode()) for i in range(5)]

    async def run_all():
        tasks = []
        for i, (req, resp) in enumerate(bodies):
            svc = stub_service(payload=signed_attestation(req, resp, key=PRIVATE_KEY))
            tasks.append(svc.engine().verify(_record(req, resp, chat_id=f"chat-{i}")))
        # one tampered request among them
        svc = stub_service(payload=signed_attestation(b"x", b"y"))
        tasks.append(svc.engine().verify(_record(b"not x", b"y", chat_id="chat-bad")))
        return await asyncio.gather(*tasks)

    verdicts = asyncio.run(run_all())
    assert [v.is_verified for v in verdicts] == [True] * 5 + [False]
    assert [v.transaction_id for v in verdicts][:2] == ["chat-0", "chat-1"]


def test_verify_transaction_wrapper(stub_service):
    svc = stub_service(payload=signed_attestation(REQUEST, RESPONSE))
    verdict = asyncio.run(verify_transaction(_record(), client=svc.client()))
    assert verdict.is_verified
    assert verdict.signing_algo == "ecdsa"
    assert verdict.request_body == REQUEST.decode()
    assert verdict.response_body == RESPONSE.decode()
