# forgeblock/services/session_authority.py
import hmac
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from forgeblock.core.config import Settings
from forgeblock.core.errors import AuthError, ConflictError, ServiceError, ValidationError
from forgeblock.core.security import TokenSigner, get_password_hash, verify_password
from forgeblock.crud.base import CredentialStore
from forgeblock.models.user import SessionGrant, UserRecord, VerifiedSession

logger = logging.getLogger("forgeblock.services.session_authority")

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,24}$")
INVALID_CREDENTIALS = "Invalid username or password"


def validate_username(username: str) -> None:
    if not 3 <= len(username) <= 24:
        raise ValidationError("Username must be 3-24 characters")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Username can only contain letters, numbers and underscore")


class SessionAuthority:
    """
    Registration, login, logout, verification and rename.

    A token is accepted only when both stages agree: the signer vouches for
    its signature and embedded expiry, and the stored user row still names it
    as the current token, unexpired and not banned.
    """

    def __init__(self, store: CredentialStore, signer: TokenSigner, settings: Settings):
        self.store = store
        self.signer = signer
        self.settings = settings

    # --- Registration ---

    def register(self, username: str, email: str, password: str) -> str:
        username = username or ""
        email = (email or "").strip()
        if not username or not email or not password:
            raise ValidationError("All fields are required")

        validate_username(username)
        if len(password) < self.settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {self.settings.PASSWORD_MIN_LENGTH} characters")
        try:
            email = validate_email(email, check_deliverability=False).normalized.lower()
        except EmailNotValidError:
            raise ValidationError("Invalid email format")

        # Fast path for a friendly message; the store's unique indexes are the real guard
        if self.store.username_taken(username) or self.store.email_taken(email):
            raise ConflictError("Username or email already exists")

        hashed_password = get_password_hash(password, rounds=self.settings.BCRYPT_ROUNDS)
        user = self.store.create_user(username=username, email=email, hashed_password=hashed_password)
        logger.info(f"User registered: {user.username} (ID: {user.id})")
        return "Registration successful! You can now login."

    # --- Login ---

    def login(self, username: str, password: str, remember_long: bool = False) -> SessionGrant:
        username = username or ""
        if not username or not password:
            raise ValidationError("Username and password required")

        user = self.store.get_user_by_username(username)
        if user is None:
            raise AuthError(INVALID_CREDENTIALS)
        # Reported before the password check: ban status is deliberately not hidden
        if user.is_banned:
            raise AuthError("Account is banned")
        if not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for user ID {user.id}")
            raise AuthError(INVALID_CREDENTIALS)

        now = datetime.now(timezone.utc)
        issued = self.signer.issue(user.id, user.username, remember_long, now=now)
        # The one place an earlier token is revoked: it is simply no longer the stored one
        self.store.set_session(user.id, token=issued.token, expires_at=issued.expires_at, last_login_at=now)
        logger.info(f"User logged in: {user.username} (ID: {user.id}, remember={remember_long})")
        return SessionGrant(user_id=user.id, username=user.username, token=issued.token,
                            expires_at=issued.expires_at)

    # --- Verification ---

    def _check_stored_session(self, user: Optional[UserRecord], token: str, now: datetime) -> bool:
        if user is None or user.is_banned or not user.auth_token:
            return False
        if not hmac.compare_digest(user.auth_token.encode(), token.encode()):
            return False  # Superseded by a later login or rename
        return user.token_expires_at is not None and user.token_expires_at > now

    def verify(self, token: Optional[str]) -> Optional[VerifiedSession]:
        """
        Returns the verified identity, or None. Callers never learn which stage
        failed, so unauthenticated probes cannot tell a banned account from a
        stale token.
        """
        if not token:
            return None
        claims = self.signer.validate(token)
        if claims is None:
            return None
        try:
            user = self.store.get_user(claims.user_id)
        except ServiceError as e:
            logger.warning(f"Session verification degraded to invalid: {e.message}")
            return None
        if not self._check_stored_session(user, token, datetime.now(timezone.utc)):
            return None
        return VerifiedSession(user_id=user.id, username=user.username)

    # --- Logout ---

    def logout(self, token: Optional[str] = None) -> bool:
        """
        Ends the session for the caller. Cookies are cleared by the API layer;
        the stored token is only cleared when LOGOUT_REVOKES_SERVER_TOKEN is on.
        Returns True when a stored token was revoked.
        """
        if not self.settings.LOGOUT_REVOKES_SERVER_TOKEN or not token:
            return False
        session = self.verify(token)
        if session is None:
            return False
        revoked = self.store.clear_session(session.user_id, token=token)
        if revoked:
            logger.info(f"Revoked stored token on logout for user ID {session.user_id}")
        return revoked

    # --- Account changes ---

    def change_username(self, user_id: int, new_username: str, current_password: str) -> SessionGrant:
        new_username = new_username or ""
        if not new_username or not current_password:
            raise ValidationError("New username and current password are required")

        user = self.store.get_user(user_id)
        if user is None or user.is_banned:
            raise AuthError(INVALID_CREDENTIALS)
        # A stolen token alone must not be enough to take over the account name
        if not verify_password(current_password, user.hashed_password):
            raise AuthError("Current password is incorrect")

        validate_username(new_username)
        if self.store.username_taken(new_username, exclude_user_id=user.id):
            raise ConflictError("Username already taken")

        now = datetime.now(timezone.utc)
        remember_long = (
            user.token_expires_at is not None
            and user.token_expires_at - now > timedelta(days=self.settings.SESSION_DEFAULT_DAYS)
        )
        # The token embeds the username, so renaming always supersedes the current one
        issued = self.signer.issue(user.id, new_username, remember_long, now=now)
        renamed = self.store.rename_user(user.id, new_username=new_username, token=issued.token,
                                         expires_at=issued.expires_at)
        return SessionGrant(user_id=renamed.id, username=renamed.username, token=issued.token,
                            expires_at=issued.expires_at)

    def ban_user(self, user_id: int, banned: bool = True) -> UserRecord:
        """Sets the ban flag; every token of a banned user stops verifying at once."""
        user = self.store.set_banned(user_id, banned)
        logger.warning(f"User {user.username} (ID: {user.id}) {'banned' if banned else 'unbanned'}")
        return user
