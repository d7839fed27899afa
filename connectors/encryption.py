"""
Token encryption — encrypt / decrypt OAuth tokens at rest.

Uses AES-256-CBC with PKCS7 padding from the ``cryptography`` library and a
fresh random IV per call.  Ciphertext is stored as ``{iv_hex}:{cipher_hex}``.
The key is read from ``config.token_encryption_key`` (env var:
``TOKEN_ENCRYPTION_KEY``) on every call and must be 64 hex characters.

If no key is configured, encryption is **disabled** and tokens pass through
unchanged.  Generate a key with::

    python -c "import secrets; print(secrets.token_hex(32))"
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from config.settings import config
from connectors.exceptions import OAuthConfigError

logger = logging.getLogger(__name__)

_KEY_BYTES = 32
_IV_BYTES = 16
_SEPARATOR = ":"

_warned_disabled = False


def _load_key(key: Optional[str] = None) -> Optional[bytes]:
    """Return the raw AES key, or None when encryption is disabled."""
    global _warned_disabled

    hex_key = key if key is not None else config.token_encryption_key
    if not hex_key:
        if not _warned_disabled:
            logger.warning(
                "TOKEN_ENCRYPTION_KEY not set — OAuth tokens will be stored as plaintext."
            )
            _warned_disabled = True
        return None

    try:
        raw = bytes.fromhex(hex_key)
    except ValueError as exc:
        raise OAuthConfigError("TOKEN_ENCRYPTION_KEY must be hex-encoded") from exc
    if len(raw) != _KEY_BYTES:
        raise OAuthConfigError(
            f"TOKEN_ENCRYPTION_KEY must be {_KEY_BYTES * 2} hex characters (AES-256)"
        )
    return raw


def encrypt_token(plaintext: str, *, key: Optional[str] = None) -> str:
    """
    Encrypt a token string for storage.

    Returns ``{iv_hex}:{cipher_hex}``; with no key configured the plaintext
    is returned unchanged.
    """
    raw_key = _load_key(key)
    if raw_key is None:
        return plaintext

    iv = os.urandom(_IV_BYTES)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(raw_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}{_SEPARATOR}{ciphertext.hex()}"


def decrypt_token(ciphertext: str, *, key: Optional[str] = None) -> str:
    """
    Decrypt a stored token.

    Values without the ``:`` separator were stored before encryption was
    enabled and are returned as-is, as is everything when no key is set.
    """
    raw_key = _load_key(key)
    if raw_key is None or _SEPARATOR not in ciphertext:
        return ciphertext

    iv_hex, cipher_hex = ciphertext.split(_SEPARATOR, 1)
    decryptor = Cipher(algorithms.AES(raw_key), modes.CBC(bytes.fromhex(iv_hex))).decryptor()
    padded = decryptor.update(bytes.fromhex(cipher_hex)) + decryptor.finalize()

    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


def is_encryption_enabled() -> bool:
    """Check whether token encryption is active. Raises on a malformed key."""
    return _load_key() is not None
