"""
State and PKCE helpers (RFC 7636, S256 method).
"""

from __future__ import annotations

import base64
import hashlib
import secrets

_ENTROPY_BYTES = 32


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    """64 lowercase hex chars of CSRF state."""
    return secrets.token_hex(_ENTROPY_BYTES)


def generate_code_verifier() -> str:
    """43-char URL-safe verifier (32 random bytes, unpadded)."""
    return _b64url(secrets.token_bytes(_ENTROPY_BYTES))


def generate_code_challenge(verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())
