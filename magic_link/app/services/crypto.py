"""
Crypto helpers for the token lifecycle.

- SHA-256 hashing of token strings (record lookup key)
- Random identifiers for invitation ids and jti claims
- Constant-time comparison and HMAC helpers
- RSA key pair generation for local development and tests
"""

import hashlib
import hmac
import secrets
from typing import Tuple, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from magic_link.domain.base import generate_uuid

MIN_RANDOM_STRING_LENGTH = 16


def hash_token(value: str) -> str:
    """
    SHA-256 hex digest of a token string.

    This is the lookup key for invitation records, so it must stay
    byte-identical between issuance and validation.

    Returns:
        64-character lowercase hex string
    """
    if not isinstance(value, str):
        raise TypeError("Token must be a string")
    if not value:
        raise ValueError("Token must be a non-empty string")
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def new_random_id() -> str:
    """128-bit random id in UUID form, used for invitation ids and jti claims"""
    return generate_uuid()


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError("Expected str or bytes")


def constant_time_equals(a: Union[str, bytes], b: Union[str, bytes]) -> bool:
    return hmac.compare_digest(_to_bytes(a), _to_bytes(b))


def generate_random_string(length: int = 32) -> str:
    """Hex random string of the given length (nonces, CSRF tokens)"""
    if length < MIN_RANDOM_STRING_LENGTH:
        raise ValueError(
            f"Random string length must be at least {MIN_RANDOM_STRING_LENGTH} characters"
        )
    return secrets.token_hex((length + 1) // 2)[:length]


def generate_hmac(message: str, secret: str) -> str:
    if not message or not secret:
        raise ValueError("Message and secret are required")
    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).hexdigest()


def verify_hmac(message: str, signature: str, secret: str) -> bool:
    expected = generate_hmac(message, secret)
    return constant_time_equals(signature, expected)


def generate_rsa_key_pair(key_size: int = 2048) -> Tuple[str, str]:
    """
    Generate an RSA key pair for RS256 signing.

    Production deployments load their keys from configuration; this is for
    local development and tests.

    Returns:
        (private_key_pem, public_key_pem) - PKCS#8 and SubjectPublicKeyInfo
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )
    return private_pem, public_pem
