"""
Admin session endpoints.

Endpoints:
- POST /auth/sign-in
- POST /auth/sign-up
- POST /auth/sign-out
- GET  /auth/session
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status

from careguard.api.dependencies import bearer_token, get_sessions, http_error, optional_session
from careguard.api.schemas import CredentialsRequest
from careguard.error_handler import StoreError
from careguard.session_manager import SessionManager
from careguard.validation import FormValidationError, raise_if_errors, require_str, validate_email

api = APIRouter(prefix="/auth", tags=["Auth"])


def _validate_credentials(request: CredentialsRequest) -> None:
    errors: Dict[str, str] = {}
    validate_email(request.email, errors)
    require_str({"password": request.password}, "password", errors, label="Password")
    raise_if_errors(errors)


def _session_body(session: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "access_token": session["access_token"],
        "token_type": "bearer",
        "email": session.get("email", ""),
        "expires_at": session.get("expires_at"),
    }


@api.post("/sign-in")
async def sign_in(request: CredentialsRequest, sessions: SessionManager = Depends(get_sessions)):
    try:
        _validate_credentials(request)
        session = await sessions.sign_in(request.email.strip(), request.password)
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "sign_in") from e
    return _session_body(session)


@api.post("/sign-up", status_code=status.HTTP_201_CREATED)
async def sign_up(request: CredentialsRequest, sessions: SessionManager = Depends(get_sessions)):
    try:
        _validate_credentials(request)
        session = await sessions.sign_up(request.email.strip(), request.password)
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "sign_up") from e
    if session is None:
        return {"confirmation_required": True, "email": request.email.strip()}
    return {"confirmation_required": False, **_session_body(session)}


@api.post("/sign-out")
async def sign_out(
    token: Optional[str] = Depends(bearer_token),
    sessions: SessionManager = Depends(get_sessions),
):
    await sessions.sign_out(token)
    return {"signed_out": True}


@api.get("/session")
async def current_session(session: Optional[Dict[str, Any]] = Depends(optional_session)):
    if session is None:
        return {"authenticated": False}
    return {"authenticated": True, "email": session.get("email", ""), "expires_at": session.get("expires_at")}
