"""
Encryption at rest for MFA secrets.

AES-256-GCM with a key derived as SHA-256(AUTH_SECRET). Every call uses a
fresh 16-byte nonce. Stored format (base64 text):

    nonce (16 bytes) || auth tag (16 bytes) || ciphertext

A blob that fails authentication is never decoded into "something": decrypt
raises SecretIntegrityError, which callers let propagate to the generic 500
handler. A missing master secret raises ConfigurationError at construction.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from errors import ConfigurationError, SecretIntegrityError
from shared.logging import get_logger

log = get_logger(__name__)

NONCE_BYTES = 16
TAG_BYTES = 16


class SecretCodec:
    def __init__(self, master_secret: str) -> None:
        if not master_secret:
            log.critical("mfa_codec_unconfigured", reason="auth_secret_missing")
            raise ConfigurationError("AUTH_SECRET is required for MFA encryption")
        key = hashlib.sha256(master_secret.encode("utf-8")).digest()
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag; the stored layout puts it before the ciphertext.
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            combined = base64.b64decode(blob.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            log.critical("mfa_secret_undecodable", error_type=type(e).__name__)
            raise SecretIntegrityError("Stored MFA secret is not valid base64") from e

        if len(combined) < NONCE_BYTES + TAG_BYTES:
            log.critical("mfa_secret_truncated", length=len(combined))
            raise SecretIntegrityError("Stored MFA secret is truncated")

        nonce = combined[:NONCE_BYTES]
        tag = combined[NONCE_BYTES : NONCE_BYTES + TAG_BYTES]
        ciphertext = combined[NONCE_BYTES + TAG_BYTES :]

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            log.critical("mfa_secret_integrity_failure")
            raise SecretIntegrityError("Stored MFA secret failed authentication") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SecretIntegrityError("Stored MFA secret is not valid text") from e
