# forgeblock/crud/sql_store.py
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from forgeblock.core.errors import ConflictError, NotFoundError, StorageError
from forgeblock.crud import crud_player, crud_user
from forgeblock.crud.base import CredentialStore
from forgeblock.db.base import Base
from forgeblock.models.player import PlayerStateRecord
from forgeblock.models.user import UserRecord

logger = logging.getLogger("forgeblock.crud.sql_store")


class SqlCredentialStore(CredentialStore):
    """Durable store on SQLAlchemy. One session per call, closed before returning."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as e:
            db.rollback()
            # Unique index hit: someone else registered the name between our check and insert
            logger.warning(f"Integrity violation in credential store: {e.orig}")
            raise ConflictError("Username or email already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Database error in credential store: {e}")
            raise StorageError() from e
        finally:
            db.close()

    def _require_user(self, db: Session, user_id: int):
        user = crud_user.get_user(db, user_id=user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def initialize(self) -> None:
        with self._session() as db:
            Base.metadata.create_all(bind=db.get_bind())
        logger.info("Database tables checked/created.")

    def health(self) -> str:
        try:
            with self._session() as db:
                db.execute(text("SELECT 1"))
            return "connected"
        except StorageError:
            return "error"

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._session() as db:
            user = crud_user.get_user(db, user_id=user_id)
            return UserRecord.model_validate(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session() as db:
            user = crud_user.get_user_by_username(db, username=username)
            return UserRecord.model_validate(user) if user else None

    def username_taken(self, username: str, exclude_user_id: Optional[int] = None) -> bool:
        with self._session() as db:
            return crud_user.username_taken(db, username=username, exclude_user_id=exclude_user_id)

    def email_taken(self, email: str) -> bool:
        with self._session() as db:
            return crud_user.get_user_by_email(db, email=email) is not None

    def create_user(self, username: str, email: str, hashed_password: str) -> UserRecord:
        with self._session() as db:
            user = crud_user.create_user_with_player_state(
                db, username=username, email=email, hashed_password=hashed_password
            )
            return UserRecord.model_validate(user)

    def set_session(self, user_id: int, token: str, expires_at: datetime,
                    last_login_at: Optional[datetime] = None) -> UserRecord:
        with self._session() as db:
            user = self._require_user(db, user_id)
            user = crud_user.update_user_session(db, user, token=token, expires_at=expires_at,
                                                 last_login_at=last_login_at)
            return UserRecord.model_validate(user)

    def clear_session(self, user_id: int, token: Optional[str] = None) -> bool:
        with self._session() as db:
            user = crud_user.get_user(db, user_id=user_id)
            if user is None:
                return False
            return crud_user.clear_user_session(db, user, token=token)

    def rename_user(self, user_id: int, new_username: str, token: str, expires_at: datetime) -> UserRecord:
        with self._session() as db:
            user = self._require_user(db, user_id)
            user = crud_user.update_username(db, user, new_username=new_username, token=token,
                                             expires_at=expires_at)
            return UserRecord.model_validate(user)

    def set_banned(self, user_id: int, banned: bool) -> UserRecord:
        with self._session() as db:
            user = self._require_user(db, user_id)
            return UserRecord.model_validate(crud_user.set_user_banned(db, user, banned=banned))

    def delete_user(self, user_id: int) -> bool:
        with self._session() as db:
            user = crud_user.get_user(db, user_id=user_id)
            if user is None:
                return False
            crud_user.delete_user(db, user)
            return True

    def get_player_state(self, user_id: int) -> Optional[PlayerStateRecord]:
        with self._session() as db:
            state = crud_player.get_player_state(db, user_id=user_id)
            return PlayerStateRecord.model_validate(state) if state else None

    def save_player_state(self, user_id: int, place_id: Optional[int], pos_x: Optional[float],
                          pos_y: Optional[float], pos_z: Optional[float],
                          play_time_delta: int) -> PlayerStateRecord:
        with self._session() as db:
            self._require_user(db, user_id)
            state = crud_player.save_player_state(
                db, user_id=user_id, place_id=place_id, pos_x=pos_x, pos_y=pos_y, pos_z=pos_z,
                play_time_delta=play_time_delta,
            )
            return PlayerStateRecord.model_validate(state)

    def count_users(self) -> int:
        with self._session() as db:
            return crud_user.count_users(db)

    def count_recent_logins(self, since: datetime) -> int:
        with self._session() as db:
            return crud_user.count_users_logged_in_since(db, since=since)
