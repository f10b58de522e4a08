"""Identity codec — opaque, tamper-evident tokens for tenant and store ids.

Identifiers travel inside credentials as AES-256-GCM ciphertext. Every call
to ``encode`` draws a fresh 96-bit nonce, so two tokens for the same id are
unlinkable; ``decode`` authenticates before it trusts a single byte.

Token layout (URL-safe base64, unpadded)::

    nonce (12 bytes) || ciphertext || tag (16 bytes)
"""

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from storeledger.errors import DecodeError

NONCE_SIZE = 12
TAG_SIZE = 16


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(token: str) -> bytes:
    padding = "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode(token + padding)


class IdentityCodec:
    def __init__(self, secret: str | bytes):
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if not secret:
            raise ValueError("Codec secret must not be empty")
        self._aead = AESGCM(hashlib.sha256(secret).digest())

    def encode(self, raw_id) -> str:
        raw_id = str(raw_id)
        if not raw_id:
            raise ValueError("Cannot encode an empty identifier")
        nonce = os.urandom(NONCE_SIZE)
        return _b64encode(nonce + self._aead.encrypt(nonce, raw_id.encode("utf-8"), None))

    def decode(self, token) -> str:
        """Recover the identifier inside ``token``.

        Raises ``DecodeError`` and nothing else, whatever the input.
        """
        if not isinstance(token, str) or not token:
            raise DecodeError("Token must be a non-empty string")

        try:
            data = _b64decode(token)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("Token is not valid base64") from exc

        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise DecodeError("Token is too short")

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise DecodeError("Token failed authentication") from exc

        try:
            raw_id = plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("Token does not hold text") from exc

        if not raw_id:
            raise DecodeError("Token holds an empty identifier")
        return raw_id
