"""Attestation signer port."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AttestationSigner(ABC):
    """Signs ledger attestations with a private key held by the service."""

    @property
    @abstractmethod
    def public_key(self) -> str:
        """Base64 encoding of the raw public key."""
        ...

    @abstractmethod
    def sign(self, message: bytes) -> str:
        """Sign ``message`` and return the base64 signature."""
        ...

    @abstractmethod
    def verify(self, message: bytes, signature: str) -> bool:
        """Check a base64 signature over ``message``."""
        ...
