# forgeblock/schemas/user.py
from sqlalchemy import Column, Index, String, Integer, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from forgeblock.db.base_class import Base

class User(Base):
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(32), nullable=False)  # Case-insensitive uniqueness via ix_users_username_lower
    email = Column(String(255), unique=True, index=True, nullable=False)  # Stored lowercased
    hashed_password = Column(String(255), nullable=False)
    # Most recently issued session token; anything else presented for this user is revoked
    auth_token = Column(String(512), nullable=True, index=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    is_banned = Column(Boolean(), default=False, nullable=False, server_default='false')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    player_state = relationship(
        "PlayerState",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

# The storage-level guard against two concurrent registrations of "Alice" and "alice"
Index("ix_users_username_lower", func.lower(User.username), unique=True)
