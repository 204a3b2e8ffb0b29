"""Ledger storage and integrity errors."""

from govgate.domain.exceptions import GovernanceError


class LedgerStoreError(GovernanceError):
    """Raised when the ledger store cannot read or write."""


class DuplicateIdempotencyKeyError(LedgerStoreError):
    """Raised by a store when the (org, site, idempotency_key) constraint fires.

    The ledger writer resolves this by re-reading and returning the
    existing row. It is never surfaced to API callers.
    """

    def __init__(self, org_id: str, site_id: str | None, idempotency_key: str) -> None:
        self.org_id = org_id
        self.site_id = site_id
        self.idempotency_key = idempotency_key
        super().__init__(
            f"Governance event already recorded for idempotency key {idempotency_key}"
        )


class UnsupportedHashAlgorithmError(GovernanceError):
    """Raised when a payload hash algorithm version is not known."""

    def __init__(self, algo: str) -> None:
        self.algo = algo
        super().__init__(f"Unsupported payload hash algorithm: {algo!r}")


class LedgerPayloadError(LedgerStoreError):
    """Raised when an event's content cannot be canonicalized for hashing.

    Nothing is written. Governed mutations refuse it with 400 instead of
    reporting the ledger as unavailable.
    """

    code = "LEDGER_PAYLOAD_INVALID"
