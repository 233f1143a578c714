# forgeblock/api/deps.py
import logging
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer  # Only for the "Authorization: Bearer" scheme

from forgeblock.core.config import Settings
from forgeblock.core.errors import AuthError
from forgeblock.crud.base import CredentialStore
from forgeblock.models.user import VerifiedSession
from forgeblock.services.game_gateway import GameGateway
from forgeblock.services.session_authority import SessionAuthority

logger = logging.getLogger("forgeblock.api.deps")  # Logger for this module

# auto_error=False: the token may just as well arrive in the auth cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_store(request: Request) -> CredentialStore:
    return request.app.state.store

def get_session_authority(request: Request) -> SessionAuthority:
    return request.app.state.session_authority

def get_game_gateway(request: Request) -> GameGateway:
    return request.app.state.game_gateway

def get_presented_token(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """The session token from the auth cookie, falling back to the bearer header."""
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or bearer_token

def get_current_session(
    token: Optional[str] = Depends(get_presented_token),
    authority: SessionAuthority = Depends(get_session_authority),
) -> VerifiedSession:
    session = authority.verify(token)
    if session is None:
        raise AuthError("Could not validate credentials")
    return session
