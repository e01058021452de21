from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature, ValidationError

from .errors import MalformedSignature

SIGNATURE_LENGTH = 65  # r (32) || s (32) || v (1)
_VALID_V = {0, 1, 27, 28}


def _signature_bytes(signature: str | bytes) -> bytes:
    if isinstance(signature, (bytes, bytearray)):
        raw = bytes(signature)
    else:
        text = signature.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise MalformedSignature("Signature is not valid hex", signature=signature) from e
    if len(raw) != SIGNATURE_LENGTH:
        raise MalformedSignature(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}",
            signature=raw.hex(),
        )
    if raw[-1] not in _VALID_V:
        raise MalformedSignature(f"Invalid recovery id {raw[-1]}", signature=raw.hex())
    return raw


def recover_address(message: str, signature: str | bytes) -> str:
    """Recover the checksummed address that signed ``message``.

    The message is hashed with the personal-message prefix
    (``"\\x19Ethereum Signed Message:\\n" + len``) before recovery, which is
    the convention the attestation service signs with. Whether the address
    is trusted is left to the caller.
    """
    raw = _signature_bytes(signature)
    try:
        return Account.recover_message(encode_defunct(text=message), signature=raw)
    except (BadSignature, ValidationError, ValueError) as e:
        raise MalformedSignature(f"Signature recovery failed: {e}", signature=raw.hex()) from e


def sign_message(message: str, private_key: str | bytes) -> str:
    """Sign ``message`` in the same convention; returns 0x-prefixed hex."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return "0x" + bytes(signed.signature).hex()


def address_of(private_key: str | bytes) -> str:
    return Account.from_key(private_key).address


__all__ = ["recover_address", "sign_message", "address_of", "SIGNATURE_LENGTH"]
