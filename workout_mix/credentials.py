"""
Credential boundary between the session layer and the playlist pipeline.

The session layer owns refresh; the pipeline only ever sees a validated
bearer token and treats a missing or expired one as a precondition failure.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import PreconditionError


@dataclass(frozen=True)
class Credential:
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None  # unix seconds; None = unknown

    @classmethod
    def from_session(cls, session: Optional[Dict[str, Any]]) -> "Credential":
        """Build from a session payload shaped like {"user": {"accessToken": ...}}."""
        if not session:
            raise PreconditionError("Not authenticated", reason="unauthenticated")
        user = session.get("user") or {}
        token = user.get("accessToken") or user.get("access_token")
        if not token:
            raise PreconditionError("Missing catalog access token in session", reason="unauthenticated")
        expires_at = user.get("expiresAt") or user.get("expires_at")
        return cls(
            access_token=str(token),
            refresh_token=user.get("refreshToken") or user.get("refresh_token"),
            expires_at=float(expires_at) if expires_at is not None else None,
        )

    def is_expired(self, now: Optional[float] = None, leeway: float = 30.0) -> bool:
        if self.expires_at is None:
            return False
        now = time.time() if now is None else now
        return now + leeway >= self.expires_at

    def bearer_token(self, now: Optional[float] = None) -> str:
        """
        Return the token to send, or raise PreconditionError.
        """
        token = (self.access_token or "").strip()
        if not token:
            raise PreconditionError("Missing catalog access token", reason="unauthenticated")
        if self.is_expired(now):
            raise PreconditionError("Catalog access token has expired", reason="unauthenticated")
        return token
