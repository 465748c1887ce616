"""
Password gate.

Endpoints:
  POST /api/auth/login    – exchange the shop password for a session token
  POST /api/auth/logout   – end the session
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request

from jewel_pos.core.auth import SessionRegistry, bearer_token
from jewel_pos.schemas.responses import LoginRequest, LoginResponse

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, request: Request):
    registry: SessionRegistry = request.app.state.sessions
    session = registry.login(body.password)
    if session is None:
        raise HTTPException(status_code=401, detail="Incorrect password")
    return LoginResponse(token=session.token, expires_at=session.expires_at)


@auth_router.post("/logout")
def logout(request: Request, authorization: Optional[str] = Header(default=None)) -> dict:
    registry: SessionRegistry = request.app.state.sessions
    token = bearer_token(authorization)
    ended = registry.logout(token) if token else False
    return {"status": "logged_out" if ended else "no_session"}
