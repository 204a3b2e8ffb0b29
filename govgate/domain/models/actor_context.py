"""Authenticated actor and organizational scope for a governed request."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, and in which organization and site.

    Authentication happens upstream; this is the already-trusted result.
    """

    org_id: str
    actor_user_id: str | None = None
    site_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.org_id, str) or not self.org_id.strip():
            raise ValueError("org_id must be a non-empty string")

    @property
    def rate_limit_key(self) -> str:
        return f"{self.org_id}:{self.actor_user_id or 'anonymous'}"
