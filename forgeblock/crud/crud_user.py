# forgeblock/crud/crud_user.py
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from forgeblock.schemas.player import PlayerState
from forgeblock.schemas.user import User

logger = logging.getLogger("forgeblock.crud.user")  # Logger for this module

def get_user(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(func.lower(User.username) == username.lower()).first()

def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.lower()).first()

def username_taken(db: Session, username: str, exclude_user_id: Optional[int] = None) -> bool:
    query = db.query(User.id).filter(func.lower(User.username) == username.lower())
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None

def create_user_with_player_state(db: Session, username: str, email: str, hashed_password: str) -> User:
    """Inserts the user and its player state in one commit; neither exists without the other."""
    db_user = User(
        username=username,
        email=email.lower(),
        hashed_password=hashed_password,
        is_banned=False,
    )
    db_user.player_state = PlayerState(place_id=1, pos_x=0, pos_y=5, pos_z=0, play_time_seconds=0)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info(f"Created new user {username} (ID: {db_user.id})")

    return db_user

def update_user_session(db: Session, user: User, token: str, expires_at: datetime,
                        last_login_at: Optional[datetime] = None) -> User:
    user.auth_token = token
    user.token_expires_at = expires_at
    if last_login_at is not None:
        user.last_login_at = last_login_at
    db.commit()
    db.refresh(user)
    return user

def clear_user_session(db: Session, user: User, token: Optional[str] = None) -> bool:
    """Clears the stored token. With `token`, only if it is still the current one."""
    if token is not None and user.auth_token != token:
        return False
    user.auth_token = None
    user.token_expires_at = None
    db.commit()
    logger.info(f"Cleared stored session for user {user.username} (ID: {user.id})")
    return True

def update_username(db: Session, user: User, new_username: str, token: str, expires_at: datetime) -> User:
    old_username = user.username
    user.username = new_username
    user.auth_token = token
    user.token_expires_at = expires_at
    db.commit()
    db.refresh(user)
    logger.info(f"Renamed user {old_username} -> {new_username} (ID: {user.id})")
    return user

def set_user_banned(db: Session, user: User, banned: bool) -> User:
    user.is_banned = banned
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.username} (ID: {user.id}) is_banned set to {banned}")
    return user

def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()
    logger.info(f"Deleted user {user.username} (ID: {user.id})")

def count_users(db: Session) -> int:
    return db.query(func.count(User.id)).scalar() or 0

def count_users_logged_in_since(db: Session, since: datetime) -> int:
    return db.query(func.count(User.id)).filter(User.last_login_at >= since).scalar() or 0
