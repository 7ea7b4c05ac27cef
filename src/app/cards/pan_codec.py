"""Reversible, deterministic encryption of card numbers (PANs).

Only ciphertext produced here is ever persisted. The key is the first 16
bytes of SHA-256 over the configured secret (AES-128) and the cipher runs in
ECB mode, so the same PAN always encrypts to the same text. That property is
what lets the unique constraint on ``cards.card_number`` reject duplicate PANs
without comparing plaintext.
"""

import base64
import binascii
import hashlib
import logging
import re
from functools import lru_cache

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from app.config import settings
from app.core.exceptions import CodecError

logger = logging.getLogger(__name__)

MASK_PLACEHOLDER = "****"
_NON_DIGITS = re.compile(r"\D")


def derive_key(secret: str) -> bytes:
    """Derive a 16-byte AES key from a shared secret."""
    if not secret:
        raise CodecError(details={"reason": "empty encryption secret"})
    return hashlib.sha256(secret.encode("utf-8")).digest()[:16]


class PanCodec:
    """Encrypts, decrypts and masks card numbers."""

    def __init__(self, secret: str):
        """
        Args:
            secret: Shared secret the AES key is derived from

        Raises:
            CodecError: If the secret is empty
        """
        self._key = derive_key(secret)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.ECB())

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a card number to Base64 ciphertext.

        Args:
            plaintext: Card number in clear text

        Returns:
            Base64 ciphertext (empty input is returned unchanged)

        Raises:
            CodecError: If encryption fails
        """
        if not plaintext:
            return plaintext
        try:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = self._cipher().encryptor()
            encrypted = encryptor.update(padded) + encryptor.finalize()
        except (ValueError, TypeError) as exc:
            logger.error("Card number encryption failed")
            raise CodecError(details={"operation": "encrypt"}) from exc
        return base64.b64encode(encrypted).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt Base64 ciphertext back to the card number.

        Args:
            ciphertext: Value produced by ``encrypt``

        Returns:
            Card number in clear text (empty input is returned unchanged)

        Raises:
            CodecError: If the ciphertext is malformed or was made with another key
        """
        if not ciphertext:
            return ciphertext
        try:
            raw = base64.b64decode(ciphertext, validate=True)
            decryptor = self._cipher().decryptor()
            padded = decryptor.update(raw) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
            logger.error("Card number decryption failed")
            raise CodecError(details={"operation": "decrypt"}) from exc

    def _digits(self, ciphertext: str) -> str | None:
        if not ciphertext:
            return None
        try:
            return _NON_DIGITS.sub("", self.decrypt(ciphertext))
        except CodecError:
            return None

    def mask(self, ciphertext: str) -> str:
        """Mask a stored card number as ``**** **** **** 1234``.

        Never raises: undecryptable or short input yields ``****``.
        """
        digits = self._digits(ciphertext)
        if digits is None or len(digits) < 4:
            return MASK_PLACEHOLDER
        return f"**** **** **** {digits[-4:]}"

    def mask_privileged(self, ciphertext: str) -> str:
        """Mask a stored card number as ``1234 56** **** 7890`` for administrators.

        Falls back to ``mask`` when fewer than ten digits are available.
        """
        digits = self._digits(ciphertext)
        if digits is None or len(digits) < 4:
            return MASK_PLACEHOLDER
        if len(digits) < 10:
            return self.mask(ciphertext)
        return f"{digits[:4]} {digits[4:6]}** **** {digits[-4:]}"


@lru_cache(maxsize=1)
def get_pan_codec() -> PanCodec:
    """Get the process-wide codec keyed from settings."""
    return PanCodec(settings.encryption_secret)
