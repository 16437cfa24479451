# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Encryption utilities for sealing session payloads.

A sealed value has the form ``<salt>*<token>``: ``salt`` is 16 bytes
(urlsafe base64, unpadded) and ``token`` is a Fernet token (AES-128-CBC with
HMAC-SHA256) under a key derived from the encryption key and that salt with
PBKDF2-HMAC-SHA256. Both parts are ASCII, so sealed values can be stored in
cookies as-is.

The salt is a function of the encryption key, so the expensive derivation
runs once per key per process (see :func:`prepare_key`). Each token still
carries its own random IV, so equal plaintexts seal to different values.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from flysession.kernel.exceptions import DecryptionException, EncryptionKeyException

logger = logging.getLogger(__name__)

MIN_KEY_LENGTH = 32

_SALT_BYTES = 16
_SALT_CONTEXT = b"flysession.session-salt"
_KDF_ITERATIONS = 100_000
_SEPARATOR = "*"


def validate_key(key: str | None) -> str:
    """Return *key* if it is usable as an encryption key.

    Raises:
        EncryptionKeyException: If the key is missing or shorter than 32 characters.
    """
    if not key or len(key) < MIN_KEY_LENGTH:
        raise EncryptionKeyException(
            f"Encryption key must be at least {MIN_KEY_LENGTH} characters long",
            code="SESSION_KEY_TOO_SHORT",
        )
    return key


def _key_salt(key: str) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(_SALT_CONTEXT)
    digest.update(key.encode("utf-8"))
    return digest.finalize()[:_SALT_BYTES]


@lru_cache(maxsize=32)
def _cipher(key: str) -> tuple[bytes, Fernet]:
    """Return the salt and derived Fernet cipher for *key*."""
    salt = _key_salt(key)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=_KDF_ITERATIONS,
    )
    return salt, Fernet(base64.urlsafe_b64encode(kdf.derive(key.encode("utf-8"))))


def prepare_key(key: str) -> None:
    """Validate *key* and derive its cipher ahead of the first request."""
    _cipher(validate_key(key))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def encrypt_bytes(key: str, data: bytes) -> str:
    """Seal raw *data* under *key* and return the ASCII sealed value."""
    salt, cipher = _cipher(validate_key(key))
    token = cipher.encrypt(data)
    return f"{_b64encode(salt)}{_SEPARATOR}{token.decode('ascii')}"


def decrypt_bytes(key: str, ciphertext: str) -> bytes:
    """Open a value sealed with :func:`encrypt_bytes` and return the raw bytes.

    Raises:
        DecryptionException: If the value is malformed, was tampered with, or
            was sealed under a different key.
    """
    expected_salt, cipher = _cipher(validate_key(key))
    salt_part, sep, token = ciphertext.partition(_SEPARATOR)
    if not sep or not salt_part or not token:
        raise DecryptionException("Malformed ciphertext", code="SESSION_CIPHERTEXT_MALFORMED")

    try:
        salt = _b64decode(salt_part)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionException("Malformed ciphertext salt", code="SESSION_CIPHERTEXT_MALFORMED") from exc
    if len(salt) != _SALT_BYTES:
        raise DecryptionException("Malformed ciphertext salt", code="SESSION_CIPHERTEXT_MALFORMED")
    if not hmac.compare_digest(salt, expected_salt):
        logger.debug("Rejected session ciphertext: salt mismatch")
        raise DecryptionException("Ciphertext was sealed under another key", code="SESSION_CIPHERTEXT_INVALID")

    try:
        return cipher.decrypt(token.encode("ascii"))
    except (InvalidToken, UnicodeEncodeError) as exc:
        logger.debug("Rejected session ciphertext: %s", type(exc).__name__)
        raise DecryptionException("Ciphertext failed authentication", code="SESSION_CIPHERTEXT_INVALID") from exc


def encrypt(key: str, plaintext: str) -> str:
    """Seal *plaintext* under *key*.

    Args:
        key: Encryption key, at least 32 characters.
        plaintext: Arbitrary text, encoded as UTF-8 before sealing.

    Returns:
        An ASCII string safe to place in a cookie value.
    """
    return encrypt_bytes(key, plaintext.encode("utf-8"))


def decrypt(key: str, ciphertext: str) -> str:
    """Open a value sealed with :func:`encrypt`.

    Raises:
        DecryptionException: If the value is malformed, was tampered with,
            was sealed under a different key, or is not UTF-8 text.
    """
    plaintext = decrypt_bytes(key, ciphertext)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionException("Decrypted payload is not UTF-8", code="SESSION_CIPHERTEXT_INVALID") from exc
