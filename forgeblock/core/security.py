# forgeblock/core/security.py
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import jwt, JWTError

from forgeblock.core.config import Settings
from forgeblock.models.token import IssuedToken, TokenClaims

logger = logging.getLogger("forgeblock.core.security")  # Logger for this module


def get_password_hash(password: str, rounds: int = 10) -> str:
    """Hashes a password using bcrypt."""
    # The salt is embedded within the resulting hash string.
    password_bytes = password.encode('utf-8')  # bcrypt works with bytes
    hashed_bytes = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed_bytes.decode('utf-8')  # Store the hash as a string

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    plain_password_bytes = plain_password.encode('utf-8')
    hashed_password_bytes = hashed_password.encode('utf-8')
    try:
        return bcrypt.checkpw(plain_password_bytes, hashed_password_bytes)
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.error("Stored password verifier is not a valid bcrypt hash.")
        return False


class TokenSigner:
    """
    Issues and validates session JWTs with one process-wide key.

    Issuing is a pure computation over its inputs and the key; validating only
    checks the signature and the token's embedded expiry. Whether the token is
    still the user's current one is decided by the session authority.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        signature_lifetime: timedelta = timedelta(days=30),
        remember_lifetime: timedelta = timedelta(days=30),
        default_lifetime: timedelta = timedelta(days=1),
    ):
        if not secret_key:
            raise ValueError("TokenSigner requires a non-empty secret key")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.signature_lifetime = signature_lifetime
        self.remember_lifetime = remember_lifetime
        self.default_lifetime = default_lifetime

    @classmethod
    def from_settings(cls, settings: Settings, secret_key: str) -> "TokenSigner":
        return cls(
            secret_key,
            algorithm=settings.JWT_ALGORITHM,
            signature_lifetime=timedelta(days=settings.TOKEN_SIGNATURE_DAYS),
            remember_lifetime=timedelta(days=settings.SESSION_REMEMBER_DAYS),
            default_lifetime=timedelta(days=settings.SESSION_DEFAULT_DAYS),
        )

    def issue(self, user_id: int, username: str, remember_long: bool, now: datetime | None = None) -> IssuedToken:
        now = now or datetime.now(timezone.utc)
        issued_at = int(now.timestamp())
        to_encode = {
            "sub": str(user_id),
            "userId": user_id,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + int(self.signature_lifetime.total_seconds()),
            # Two logins within the same second must still yield different tokens
            "jti": secrets.token_hex(8),
        }
        encoded_jwt = jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)
        session_lifetime = self.remember_lifetime if remember_long else self.default_lifetime
        return IssuedToken(token=encoded_jwt, expires_at=now + session_lifetime)

    def validate(self, token: str) -> TokenClaims | None:
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as e:  # Bad signature, malformed, expired: all the same to callers
            logger.debug(f"Rejected session token: {e}")
            return None

        user_id = payload.get("userId")
        username = payload.get("username")
        if not isinstance(user_id, int) or not isinstance(username, str) or "iat" not in payload or "exp" not in payload:
            logger.debug("Rejected session token: missing identity claims")
            return None

        return TokenClaims(
            user_id=user_id,
            username=username,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            signature_expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
