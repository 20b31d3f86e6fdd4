# onetime/domain/services.py
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import string
from typing import Any

# Fixed OTP alphabet: 62 symbols, no characters that need escaping in JSON.
OTP_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def random_string(length: int) -> str:
    """Random string of `length` symbols drawn from OTP_ALPHABET (CSPRNG)."""
    if length < 1:
        raise ValueError("length must be >= 1")
    return "".join(secrets.choice(OTP_ALPHABET) for _ in range(length))


def random_int(low: int, high: int) -> int:
    """Uniform integer in [low, high], both inclusive (CSPRNG)."""
    if high < low:
        raise ValueError("high must be >= low")
    return low + secrets.randbelow(high - low + 1)


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        # hmac.compare_digest supports str if types match
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _json_key(key: Any) -> str:
    return key if isinstance(key, str) else json.dumps(key, default=str)


def _string_keys(value: Any) -> Any:
    # JSON object keys are strings anyway; converting first lets mixed keys sort.
    if isinstance(value, dict):
        return {_json_key(k): _string_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_string_keys(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys, so equal data always serializes the same."""
    return json.dumps(
        _string_keys(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def data_digest(data: Any) -> str:
    """Digest binding an OTP to the context data it was generated for."""
    return sha256_hex(canonical_json(data))


def encode_codes(codes: list[str]) -> str:
    """
    base64(JSON array) of card codes.
    Encode first, hash the encoding: special characters never reach the digest raw.
    """
    raw = json.dumps(codes, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_codes(encoded: str) -> list[str]:
    """
    Inverse of encode_codes(). Raises ValueError on malformed input.
    """
    raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    codes = json.loads(raw.decode("utf-8"))
    if not isinstance(codes, list) or not all(isinstance(c, str) for c in codes):
        raise ValueError("encoded card list is not an array of strings")
    return codes
