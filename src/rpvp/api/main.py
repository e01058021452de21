from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, SecretStr

from ..client.attestation import AttestationClient
from ..engine import VerificationEngine
from ..errors import AttestationUnavailable, MalformedAttestation, MalformedSignature
from ..models import TransactionRecord, VerificationVerdict
from ..report import EvidenceReport, render
from ..settings import settings

app = FastAPI(title="Response Provenance Verifier")


class VerifyRequest(BaseModel):
    request_body: str
    response_body: str
    transaction_id: str
    model_id: str
    credential: SecretStr | None = None


class VerifyResponse(BaseModel):
    verdict: VerificationVerdict
    report: EvidenceReport


def get_engine() -> VerificationEngine:
    return VerificationEngine(AttestationClient())


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/verify", response_model=VerifyResponse)
async def verify(body: VerifyRequest, engine: VerificationEngine = Depends(get_engine)):
    credential = body.credential or settings.near_api_key
    if not credential.get_secret_value():
        raise HTTPException(status_code=400, detail="credential required")
    record = TransactionRecord(
        request_body=body.request_body.encode("utf-8"),
        response_body=body.response_body.encode("utf-8"),
        transaction_id=body.transaction_id,
        model_id=body.model_id,
        credential=credential,
    )
    try:
        verdict = await engine.verify(record)
    except AttestationUnavailable as e:
        # no verdict: the client must show "unverifiable", not "tampered"
        raise HTTPException(status_code=503, detail={"status": "undetermined", **e.to_dict()})
    except (MalformedAttestation, MalformedSignature) as e:
        logging.warning("Malformed attestation for %s: %s", body.transaction_id, e.message)
        raise HTTPException(status_code=502, detail={"status": "malformed", **e.to_dict()})
    return VerifyResponse(verdict=verdict, report=render(verdict))
