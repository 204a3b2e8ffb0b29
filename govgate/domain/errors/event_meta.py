"""Event meta validation errors."""

from govgate.domain.exceptions import GovernanceError


class EventMetaError(GovernanceError):
    """Raised when a meta payload holds a value the ledger cannot hash."""

    code = "EVENT_META_INVALID"
