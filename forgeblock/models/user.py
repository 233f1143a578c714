from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from forgeblock.models.common import CamelModel


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRecord(BaseModel):
    """A user row as seen by the services, independent of the storage backend."""
    id: int
    username: str
    email: str
    hashed_password: str
    auth_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    is_banned: bool = False
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("token_expires_at", "created_at", "last_login_at")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class VerifiedSession(BaseModel):
    user_id: int
    username: str


class SessionGrant(BaseModel):
    """Result of a successful login or rename: the new current token for the user."""
    user_id: int
    username: str
    token: str
    expires_at: datetime


# --- Request / response bodies ---

class RegisterRequest(CamelModel):
    # Defaults let the service report missing fields with its own message
    username: str = ""
    email: str = ""
    password: str = ""

class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""
    remember: bool = False

class ChangeUsernameRequest(CamelModel):
    new_username: str = ""
    current_password: str = ""

class MessageResponse(CamelModel):
    success: bool
    message: str

class SessionResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    username: str
    user_id: int
    expires_at: datetime

class VerifyResponse(CamelModel):
    valid: bool
    username: Optional[str] = None
    user_id: Optional[int] = None

class LogoutResponse(CamelModel):
    success: bool = True
