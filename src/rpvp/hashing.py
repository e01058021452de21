from __future__ import annotations

import hashlib

EMPTY_DIGEST_HEX = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _as_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def digest(data: bytes | str) -> bytes:
    """SHA-256 over the exact bytes given.

    Nothing is parsed or re-serialised: two JSON documents that differ only
    in whitespace produce different digests.
    """
    return hashlib.sha256(_as_bytes(data)).digest()


def digest_hex(data: bytes | str) -> str:
    # bytes.hex() is lowercase and zero-padded per byte (64 chars for sha256)
    return digest(data).hex()


def normalize_hex(value: str) -> str:
    value = value.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    return value


__all__ = ["EMPTY_DIGEST_HEX", "digest", "digest_hex", "normalize_hex"]
