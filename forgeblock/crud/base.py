# forgeblock/crud/base.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from forgeblock.models.player import PlayerStateRecord
from forgeblock.models.user import UserRecord


class CredentialStore(ABC):
    """
    Storage contract for users and their player state.

    Implementations enforce case-insensitive uniqueness of username and email
    themselves and raise ConflictError when it would be violated; callers'
    existence checks are only there to produce a friendlier message first.
    Backend failures surface as StorageError.
    """

    def initialize(self) -> None:
        """Creates tables or other backing structures. Safe to call repeatedly."""

    @abstractmethod
    def health(self) -> str:
        """"connected", "error" or "disconnected"."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def username_taken(self, username: str, exclude_user_id: Optional[int] = None) -> bool: ...

    @abstractmethod
    def email_taken(self, email: str) -> bool: ...

    @abstractmethod
    def create_user(self, username: str, email: str, hashed_password: str) -> UserRecord:
        """Creates the user together with default player state, or neither."""

    @abstractmethod
    def set_session(self, user_id: int, token: str, expires_at: datetime,
                    last_login_at: Optional[datetime] = None) -> UserRecord:
        """Overwrites the current token and its expiry (and last login) in one write."""

    @abstractmethod
    def clear_session(self, user_id: int, token: Optional[str] = None) -> bool: ...

    @abstractmethod
    def rename_user(self, user_id: int, new_username: str, token: str, expires_at: datetime) -> UserRecord: ...

    @abstractmethod
    def set_banned(self, user_id: int, banned: bool) -> UserRecord: ...

    @abstractmethod
    def delete_user(self, user_id: int) -> bool: ...

    @abstractmethod
    def get_player_state(self, user_id: int) -> Optional[PlayerStateRecord]: ...

    @abstractmethod
    def save_player_state(self, user_id: int, place_id: Optional[int], pos_x: Optional[float],
                          pos_y: Optional[float], pos_z: Optional[float],
                          play_time_delta: int) -> PlayerStateRecord: ...

    @abstractmethod
    def count_users(self) -> int: ...

    @abstractmethod
    def count_recent_logins(self, since: datetime) -> int: ...
