"""
Shared-password gate for the shop terminal.

A successful password check issues an ``AuthSession``; logout clears it.
The ``SessionRegistry`` lives on ``app.state`` and is created/torn down in the
application lifespan, so no session state is kept in module globals.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException, Request
from loguru import logger

from jewel_pos.core.config import settings


@dataclass(frozen=True)
class AuthSession:
    token: str
    issued_at: datetime
    expires_at: datetime

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at


class SessionRegistry:
    """In-process store of issued sessions, keyed by token."""

    def __init__(self, password: str, ttl_minutes: int) -> None:
        self._password = password
        self._ttl = timedelta(minutes=ttl_minutes)
        self._sessions: dict[str, AuthSession] = {}

    def login(self, password: str) -> Optional[AuthSession]:
        if not secrets.compare_digest(password.encode(), self._password.encode()):
            logger.warning("auth: rejected login attempt")
            return None
        now = datetime.now(timezone.utc)
        session = AuthSession(
            token=secrets.token_urlsafe(32),
            issued_at=now,
            expires_at=now + self._ttl,
        )
        self._sessions[session.token] = session
        logger.info("auth: session issued")
        return session

    def logout(self, token: str) -> bool:
        return self._sessions.pop(token, None) is not None

    def get(self, token: str) -> Optional[AuthSession]:
        session = self._sessions.get(token)
        if session is None:
            return None
        if not session.is_valid():
            del self._sessions[token]
            return None
        return session

    def clear(self) -> None:
        self._sessions.clear()


def build_registry() -> SessionRegistry:
    return SessionRegistry(settings.APP_PASSWORD, settings.SESSION_TTL_MINUTES)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def require_session(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Optional[AuthSession]:
    """FastAPI dependency guarding the feature routers when AUTH_ENABLED is on."""
    if not settings.AUTH_ENABLED:
        return None
    token = bearer_token(authorization)
    registry: SessionRegistry = request.app.state.sessions
    session = registry.get(token) if token else None
    if session is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return session
