# forgeblock/services/game_gateway.py
import logging
from typing import Optional

from forgeblock.core.errors import AuthError, ValidationError
from forgeblock.crud.base import CredentialStore
from forgeblock.models.player import DEFAULT_PLACE_ID, DEFAULT_POSITION, PlayerSnapshot, PlayerStateRecord
from forgeblock.services.session_authority import SessionAuthority

logger = logging.getLogger("forgeblock.services.game_gateway")


def _or_default(value, default):
    # Only a missing value is replaced; a stored 0 is a real coordinate
    return default if value is None else value


class GameGateway:
    """The only surface the game server talks to."""

    def __init__(self, authority: SessionAuthority, store: CredentialStore):
        self.authority = authority
        self.store = store

    def game_auth(self, token: Optional[str]) -> PlayerSnapshot:
        # Full session verification: a superseded or banned token must not get into the game
        session = self.authority.verify(token)
        if session is None:
            raise AuthError("Invalid token")

        state = self.store.get_player_state(session.user_id) or PlayerStateRecord(user_id=session.user_id)
        logger.info(f"Game server authenticated player {session.username} (ID: {session.user_id})")
        return PlayerSnapshot(
            user_id=session.user_id,
            username=session.username,
            place_id=_or_default(state.place_id, DEFAULT_PLACE_ID),
            pos_x=_or_default(state.pos_x, DEFAULT_POSITION[0]),
            pos_y=_or_default(state.pos_y, DEFAULT_POSITION[1]),
            pos_z=_or_default(state.pos_z, DEFAULT_POSITION[2]),
        )

    def save_player(
        self,
        user_id: int,
        place_id: Optional[int] = None,
        pos_x: Optional[float] = None,
        pos_y: Optional[float] = None,
        pos_z: Optional[float] = None,
        play_time_delta: int = 0,
    ) -> PlayerStateRecord:
        """
        Trusted by network placement rather than by token. Play time only ever
        grows: the delta is added to what is stored.
        """
        if play_time_delta < 0:
            raise ValidationError("playTimeDelta must not be negative")
        state = self.store.save_player_state(
            user_id, place_id=place_id, pos_x=pos_x, pos_y=pos_y, pos_z=pos_z,
            play_time_delta=play_time_delta,
        )
        logger.debug(f"Saved player state for user {user_id} (play time now {state.play_time_seconds}s)")
        return state
