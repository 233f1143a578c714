from datetime import datetime
from pydantic import BaseModel


class TokenClaims(BaseModel):
    """Identity decoded from a token whose signature and embedded expiry checked out."""
    user_id: int
    username: str
    issued_at: datetime
    signature_expires_at: datetime


class IssuedToken(BaseModel):
    token: str
    # Effective session end, stored next to the token; independent of the signature's own expiry
    expires_at: datetime
