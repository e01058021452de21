"""rpvp: verify that an inference response was attested by an enclave.

Hashes the exact request/response bodies, fetches the signed attestation
for the transaction, and checks both the digest binding and the signer
identity. Network I/O is confined to the attestation fetch.
"""
from .engine import VerificationEngine, verify_transaction  # noqa: F401
from .errors import AttestationUnavailable, MalformedAttestation, MalformedSignature  # noqa: F401
from .models import AttestationRecord, TransactionRecord, VerificationVerdict  # noqa: F401
from .report import Summary, render  # noqa: F401
