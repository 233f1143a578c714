# forgeblock/api/auth.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response

from forgeblock.api import deps
from forgeblock.core.config import Settings
from forgeblock.models.user import (
    ChangeUsernameRequest, LoginRequest, LogoutResponse, MessageResponse, RegisterRequest,
    SessionGrant, SessionResponse, VerifiedSession, VerifyResponse,
)
from forgeblock.services.session_authority import SessionAuthority

logger = logging.getLogger("forgeblock.api.auth")  # Logger for this module
router = APIRouter()


def set_session_cookies(response: Response, settings: Settings, grant: SessionGrant) -> None:
    max_age = settings.SESSION_REMEMBER_DAYS * 24 * 60 * 60
    response.set_cookie(
        settings.AUTH_COOKIE_NAME, grant.token,
        max_age=max_age, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax",
    )
    # Readable by the page script, for display only; never trusted server-side
    response.set_cookie(
        settings.USERNAME_COOKIE_NAME, grant.username,
        max_age=max_age, httponly=False, secure=settings.COOKIE_SECURE, samesite="lax",
    )


@router.post("/register", response_model=MessageResponse)
def register(
    request_data: RegisterRequest,
    authority: SessionAuthority = Depends(deps.get_session_authority),
):
    message = authority.register(request_data.username, request_data.email, request_data.password)
    return MessageResponse(success=True, message=message)


@router.post("/login", response_model=SessionResponse)
def login(
    request_data: LoginRequest,
    response: Response,
    authority: SessionAuthority = Depends(deps.get_session_authority),
    settings: Settings = Depends(deps.get_settings),
):
    grant = authority.login(request_data.username, request_data.password, request_data.remember)
    if request_data.remember:
        set_session_cookies(response, settings, grant)
    return SessionResponse(
        message="Login successful",
        token=grant.token,
        username=grant.username,
        user_id=grant.user_id,
        expires_at=grant.expires_at,
    )


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
def verify(
    token: Optional[str] = Depends(deps.get_presented_token),
    authority: SessionAuthority = Depends(deps.get_session_authority),
):
    """Always 200. Invalid sessions all look alike: `{valid: false}`."""
    session = authority.verify(token)
    if session is None:
        return VerifyResponse(valid=False)
    return VerifyResponse(valid=True, username=session.username, user_id=session.user_id)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(deps.get_presented_token),
    authority: SessionAuthority = Depends(deps.get_session_authority),
    settings: Settings = Depends(deps.get_settings),
):
    authority.logout(token)
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    response.delete_cookie(settings.USERNAME_COOKIE_NAME)
    return LogoutResponse(success=True)


@router.post("/change-username", response_model=SessionResponse)
def change_username(
    request_data: ChangeUsernameRequest,
    request: Request,
    response: Response,
    current_session: VerifiedSession = Depends(deps.get_current_session),
    authority: SessionAuthority = Depends(deps.get_session_authority),
    settings: Settings = Depends(deps.get_settings),
):
    grant = authority.change_username(
        current_session.user_id, request_data.new_username, request_data.current_password
    )
    # The old cookie now holds a superseded token; replace it if the caller used cookies
    if settings.AUTH_COOKIE_NAME in request.cookies:
        set_session_cookies(response, settings, grant)
    return SessionResponse(
        message="Username changed",
        token=grant.token,
        username=grant.username,
        user_id=grant.user_id,
        expires_at=grant.expires_at,
    )
