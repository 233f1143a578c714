# forgeblock/crud/memory_store.py
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional

from forgeblock.core.errors import ConflictError, NotFoundError
from forgeblock.crud.base import CredentialStore
from forgeblock.models.player import DEFAULT_PLACE_ID, DEFAULT_POSITION, PlayerStateRecord
from forgeblock.models.user import UserRecord

logger = logging.getLogger("forgeblock.crud.memory_store")


class MemoryCredentialStore(CredentialStore):
    """
    Non-durable store for offline/dev runs when no database is configured.
    Single process only: two instances never see each other's users.
    """

    def __init__(self) -> None:
        self.users: Dict[int, UserRecord] = {}
        self.player_states: Dict[int, PlayerStateRecord] = {}
        self._id_seq = 1
        # Every read-check-write below happens under this lock
        self._lock = threading.RLock()

    def _find_by_username(self, username: str) -> Optional[UserRecord]:
        lowered = username.lower()
        for user in self.users.values():
            if user.username.lower() == lowered:
                return user
        return None

    def _username_in_use(self, username: str, exclude_user_id: Optional[int] = None) -> bool:
        user = self._find_by_username(username)
        return user is not None and user.id != exclude_user_id

    def _email_in_use(self, email: str) -> bool:
        lowered = email.lower()
        return any(user.email == lowered for user in self.users.values())

    def _require_user(self, user_id: int) -> UserRecord:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def health(self) -> str:
        return "disconnected"

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(user_id)
            return user.model_copy() if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            user = self._find_by_username(username)
            return user.model_copy() if user else None

    def username_taken(self, username: str, exclude_user_id: Optional[int] = None) -> bool:
        with self._lock:
            return self._username_in_use(username, exclude_user_id)

    def email_taken(self, email: str) -> bool:
        with self._lock:
            return self._email_in_use(email)

    def create_user(self, username: str, email: str, hashed_password: str) -> UserRecord:
        with self._lock:
            if self._username_in_use(username) or self._email_in_use(email):
                raise ConflictError("Username or email already exists")
            user_id = self._id_seq
            self._id_seq += 1
            user = UserRecord(
                id=user_id,
                username=username,
                email=email.lower(),
                hashed_password=hashed_password,
                created_at=datetime.now(timezone.utc),
            )
            self.users[user_id] = user
            self.player_states[user_id] = PlayerStateRecord(
                user_id=user_id,
                place_id=DEFAULT_PLACE_ID,
                pos_x=DEFAULT_POSITION[0],
                pos_y=DEFAULT_POSITION[1],
                pos_z=DEFAULT_POSITION[2],
            )
            logger.info(f"Created new user {username} (ID: {user_id}) in memory store")
            return user.model_copy()

    def set_session(self, user_id: int, token: str, expires_at: datetime,
                    last_login_at: Optional[datetime] = None) -> UserRecord:
        with self._lock:
            user = self._require_user(user_id)
            changes = {"auth_token": token, "token_expires_at": expires_at}
            if last_login_at is not None:
                changes["last_login_at"] = last_login_at
            self.users[user_id] = user.model_copy(update=changes)
            return self.users[user_id].model_copy()

    def clear_session(self, user_id: int, token: Optional[str] = None) -> bool:
        with self._lock:
            user = self.users.get(user_id)
            if user is None or (token is not None and user.auth_token != token):
                return False
            self.users[user_id] = user.model_copy(update={"auth_token": None, "token_expires_at": None})
            logger.info(f"Cleared stored session for user {user.username} (ID: {user_id})")
            return True

    def rename_user(self, user_id: int, new_username: str, token: str, expires_at: datetime) -> UserRecord:
        with self._lock:
            user = self._require_user(user_id)
            if self._username_in_use(new_username, exclude_user_id=user_id):
                raise ConflictError("Username or email already exists")
            self.users[user_id] = user.model_copy(
                update={"username": new_username, "auth_token": token, "token_expires_at": expires_at}
            )
            logger.info(f"Renamed user {user.username} -> {new_username} (ID: {user_id})")
            return self.users[user_id].model_copy()

    def set_banned(self, user_id: int, banned: bool) -> UserRecord:
        with self._lock:
            user = self._require_user(user_id)
            self.users[user_id] = user.model_copy(update={"is_banned": banned})
            logger.info(f"User {user.username} (ID: {user_id}) is_banned set to {banned}")
            return self.users[user_id].model_copy()

    def delete_user(self, user_id: int) -> bool:
        with self._lock:
            if self.users.pop(user_id, None) is None:
                return False
            self.player_states.pop(user_id, None)
            return True

    def get_player_state(self, user_id: int) -> Optional[PlayerStateRecord]:
        with self._lock:
            state = self.player_states.get(user_id)
            return state.model_copy() if state else None

    def save_player_state(self, user_id: int, place_id: Optional[int], pos_x: Optional[float],
                          pos_y: Optional[float], pos_z: Optional[float],
                          play_time_delta: int) -> PlayerStateRecord:
        with self._lock:
            self._require_user(user_id)
            state = self.player_states.get(user_id) or PlayerStateRecord(
                user_id=user_id,
                place_id=DEFAULT_PLACE_ID,
                pos_x=DEFAULT_POSITION[0],
                pos_y=DEFAULT_POSITION[1],
                pos_z=DEFAULT_POSITION[2],
            )
            changes = {
                "play_time_seconds": state.play_time_seconds + play_time_delta,
                "last_save_at": datetime.now(timezone.utc),
            }
            for field, value in (("place_id", place_id), ("pos_x", pos_x), ("pos_y", pos_y), ("pos_z", pos_z)):
                if value is not None:
                    changes[field] = value
            self.player_states[user_id] = state.model_copy(update=changes)
            return self.player_states[user_id].model_copy()

    def count_users(self) -> int:
        with self._lock:
            return len(self.users)

    def count_recent_logins(self, since: datetime) -> int:
        with self._lock:
            return sum(1 for user in self.users.values()
                       if user.last_login_at is not None and user.last_login_at >= since)
