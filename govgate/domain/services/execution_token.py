"""HMAC-SHA256 execution tokens.

Token format: ``<base64url(canonical claims JSON)>.<base64url(signature)>``.
The signature covers the exact claims bytes, so any edit to the claims
invalidates the token.

Governance Constraints:
- Only issued when readiness is not NO_GO
- Signature comparison is constant time
- Secret must be at least 16 characters
- Expired and forged tokens are distinguished (TOKEN_EXPIRED vs TOKEN_INVALID)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from collections.abc import Callable, Iterable
from uuid import uuid4

from govgate.domain.errors.execution_token import ExecutionTokenError
from govgate.domain.models.execution_token import ExecutionTokenClaims
from govgate.domain.models.gate_context import ReadinessScope
from govgate.domain.models.readiness import ReadinessStatus
from govgate.domain.services.ledger_hashing import canonical_json

MIN_SECRET_LENGTH: int = 16
DEFAULT_TOKEN_TTL_SECONDS: int = 300

TOKEN_INVALID = "TOKEN_INVALID"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
TOKEN_ACTION_NOT_ALLOWED = "TOKEN_ACTION_NOT_ALLOWED"
TOKEN_NOT_CONFIGURED = "TOKEN_NOT_CONFIGURED"
TOKEN_READINESS_NO_GO = "TOKEN_READINESS_NO_GO"


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


class ExecutionTokenService:
    """Issues and verifies execution tokens.

    Example:
        >>> service = ExecutionTokenService(secret="0123456789abcdef")
        >>> token, claims = service.issue(scope, ReadinessStatus.GO, "fp")
        >>> service.verify(token, action="SHIFT_OVERRIDE_APPROVE").org_id
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the token service.

        Args:
            secret: HMAC secret.
            ttl_seconds: Token lifetime.
            clock: Returns the current Unix time in seconds.

        Raises:
            ExecutionTokenError: TOKEN_NOT_CONFIGURED if the secret is too short.
        """
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ExecutionTokenError(
                TOKEN_NOT_CONFIGURED,
                f"Execution token secret must be at least {MIN_SECRET_LENGTH} characters",
            )
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._secret = secret.encode("utf-8")
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def _sign(self, body: bytes) -> bytes:
        return hmac.new(self._secret, body, hashlib.sha256).digest()

    def issue(
        self,
        scope: ReadinessScope,
        readiness_status: ReadinessStatus | str,
        policy_fingerprint: str,
        allowed_actions: Iterable[str] = (),
    ) -> tuple[str, ExecutionTokenClaims]:
        """Issue a token for a scope whose readiness is GO or WARNING.

        Returns:
            The token string and its claims.

        Raises:
            ExecutionTokenError: TOKEN_READINESS_NO_GO when readiness is NO_GO.
        """
        status = ReadinessStatus(readiness_status)
        if status == ReadinessStatus.NO_GO:
            raise ExecutionTokenError(
                TOKEN_READINESS_NO_GO, "Cannot issue an execution token while NO_GO"
            )
        now = int(self._clock())
        claims = ExecutionTokenClaims(
            org_id=scope.org_id,
            site_id=scope.site_id,
            shift_id=scope.shift_id,
            shift_date=scope.date.isoformat() if scope.date else None,
            shift_code=scope.shift_code,
            readiness_status=status.value,
            policy_fingerprint=policy_fingerprint,
            allowed_actions=tuple(sorted({a.strip().upper() for a in allowed_actions})),
            jti=str(uuid4()),
            issued_at=now,
            expires_at=now + self._ttl_seconds,
        )
        body = canonical_json(claims.to_dict()).encode("utf-8")
        token = f"{_b64encode(body)}.{_b64encode(self._sign(body))}"
        return token, claims

    def verify(
        self,
        token: str,
        *,
        org_id: str | None = None,
        action: str | None = None,
    ) -> ExecutionTokenClaims:
        """Verify a token and return its claims.

        Args:
            token: Token string.
            org_id: When given, the token must be bound to this org.
            action: When given, the token must allow this action.

        Raises:
            ExecutionTokenError: TOKEN_INVALID, TOKEN_EXPIRED or
                TOKEN_ACTION_NOT_ALLOWED.
        """
        if not isinstance(token, str) or token.count(".") != 1:
            raise ExecutionTokenError(TOKEN_INVALID, "Malformed execution token")
        body_part, signature_part = token.split(".")
        try:
            body = _b64decode(body_part)
            signature = _b64decode(signature_part)
        except (binascii.Error, ValueError) as exc:
            raise ExecutionTokenError(TOKEN_INVALID, "Malformed execution token") from exc

        if not hmac.compare_digest(self._sign(body), signature):
            raise ExecutionTokenError(TOKEN_INVALID, "Execution token signature mismatch")

        try:
            claims = ExecutionTokenClaims.from_dict(json.loads(body.decode("utf-8")))
        except (KeyError, TypeError, ValueError) as exc:
            raise ExecutionTokenError(TOKEN_INVALID, "Execution token claims malformed") from exc

        if int(self._clock()) >= claims.expires_at:
            raise ExecutionTokenError(TOKEN_EXPIRED, "Execution token expired")
        if org_id is not None and claims.org_id != org_id:
            raise ExecutionTokenError(TOKEN_INVALID, "Execution token bound to another org")
        if action is not None and not claims.allows_action(action):
            raise ExecutionTokenError(
                TOKEN_ACTION_NOT_ALLOWED, f"Execution token does not allow {action}"
            )
        return claims
