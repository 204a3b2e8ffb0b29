"""Cryptographic adapters."""

from govgate.infrastructure.adapters.crypto.ed25519_signer import (
    Ed25519AttestationSigner,
    verify_with_public_key,
)

__all__: list[str] = ["Ed25519AttestationSigner", "verify_with_public_key"]
