"""Execution token claims.

An execution token is a short-lived, HMAC-signed proof that readiness
was not NO_GO for a given scope at issue time. Governed routes may
require one so the decision a client saw is the decision it acts on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

EXECUTION_TOKEN_VERSION: int = 1


@dataclass(frozen=True)
class ExecutionTokenClaims:
    """Claims bound into an execution token.

    Attributes:
        org_id: Organization the token is valid for.
        site_id: Site scope, when any.
        shift_id: Shift identity, when shift-scoped.
        shift_date: Shift date (YYYY-MM-DD), when shift-scoped.
        shift_code: Shift code, when shift-scoped.
        readiness_status: Readiness at issue time (GO or WARNING).
        policy_fingerprint: Policy fingerprint at issue time.
        allowed_actions: Actions the token may authorize. Empty means any.
        jti: Unique token id.
        issued_at: Unix seconds.
        expires_at: Unix seconds.
    """

    org_id: str
    readiness_status: str
    policy_fingerprint: str
    jti: str
    issued_at: int
    expires_at: int
    site_id: str | None = None
    shift_id: str | None = None
    shift_date: str | None = None
    shift_code: str | None = None
    allowed_actions: tuple[str, ...] = field(default_factory=tuple)
    version: int = EXECUTION_TOKEN_VERSION

    def allows_action(self, action: str) -> bool:
        if not self.allowed_actions:
            return True
        return action.strip().upper() in self.allowed_actions

    def to_dict(self) -> dict[str, Any]:
        return {
            "v": self.version,
            "org_id": self.org_id,
            "site_id": self.site_id,
            "shift_id": self.shift_id,
            "shift_date": self.shift_date,
            "shift_code": self.shift_code,
            "readiness_status": self.readiness_status,
            "policy_fingerprint": self.policy_fingerprint,
            "allowed_actions": list(self.allowed_actions),
            "jti": self.jti,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionTokenClaims:
        return cls(
            version=int(data.get("v", EXECUTION_TOKEN_VERSION)),
            org_id=str(data["org_id"]),
            site_id=data.get("site_id"),
            shift_id=data.get("shift_id"),
            shift_date=data.get("shift_date"),
            shift_code=data.get("shift_code"),
            readiness_status=str(data["readiness_status"]),
            policy_fingerprint=str(data["policy_fingerprint"]),
            allowed_actions=tuple(data.get("allowed_actions") or ()),
            jti=str(data["jti"]),
            issued_at=int(data["iat"]),
            expires_at=int(data["exp"]),
        )
