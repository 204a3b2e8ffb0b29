"""Ed25519 attestation signer (cryptography).

The private key is supplied as base64: either the 32-byte raw seed or
a DER-encoded PKCS8 document. Signatures and the public key are returned
base64-encoded.
"""

from __future__ import annotations

import base64
import binascii

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from govgate.application.ports.attestation_signer import AttestationSigner

RAW_KEY_LENGTH = 32


def verify_with_public_key(public_key: str, message: bytes, signature: str) -> bool:
    """Check a base64 Ed25519 signature against a base64 raw public key.

    Used offline, where only the published public key is available.
    Malformed keys or signatures verify as False.
    """
    try:
        key = Ed25519PublicKey.from_public_bytes(base64.b64decode(public_key))
        key.verify(base64.b64decode(signature), message)
    except (InvalidSignature, binascii.Error, ValueError):
        return False
    return True


class Ed25519AttestationSigner(AttestationSigner):
    """AttestationSigner backed by an Ed25519 private key."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_key: Ed25519PublicKey = private_key.public_key()
        raw_public = self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._public_key_b64 = base64.b64encode(raw_public).decode("ascii")

    @classmethod
    def from_base64(cls, encoded: str) -> Ed25519AttestationSigner:
        """Load a signer from a base64 raw seed or PKCS8 DER key.

        Raises:
            ValueError: If the value is not a usable Ed25519 private key.
        """
        try:
            material = base64.b64decode(encoded.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Ed25519 private key must be base64 encoded") from e

        if len(material) == RAW_KEY_LENGTH:
            return cls(Ed25519PrivateKey.from_private_bytes(material))

        key = serialization.load_der_private_key(material, password=None)
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError("Private key is not an Ed25519 key")
        return cls(key)

    @classmethod
    def generate(cls) -> Ed25519AttestationSigner:
        """Create a signer with a fresh random key."""
        return cls(Ed25519PrivateKey.generate())

    @property
    def public_key(self) -> str:
        return self._public_key_b64

    def sign(self, message: bytes) -> str:
        return base64.b64encode(self._private_key.sign(message)).decode("ascii")

    def verify(self, message: bytes, signature: str) -> bool:
        try:
            self._public_key.verify(base64.b64decode(signature), message)
        except (InvalidSignature, binascii.Error, ValueError):
            return False
        return True
