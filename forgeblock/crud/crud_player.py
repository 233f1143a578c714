# forgeblock/crud/crud_player.py
import logging
from typing import Optional
from sqlalchemy.orm import Session

from forgeblock.models.player import DEFAULT_PLACE_ID, DEFAULT_POSITION
from forgeblock.schemas.player import PlayerState

logger = logging.getLogger("forgeblock.crud.player")

def get_player_state(db: Session, user_id: int) -> PlayerState | None:
    return db.query(PlayerState).filter(PlayerState.user_id == user_id).first()

def save_player_state(
    db: Session,
    user_id: int,
    place_id: Optional[int],
    pos_x: Optional[float],
    pos_y: Optional[float],
    pos_z: Optional[float],
    play_time_delta: int,
) -> PlayerState:
    """
    Upserts place and position, and adds `play_time_delta` to the accumulator.
    Fields passed as None keep their stored value.
    """
    state = get_player_state(db, user_id)
    if state is None:
        # Row lagging behind the user (e.g. created before player state existed)
        state = PlayerState(
            user_id=user_id,
            place_id=DEFAULT_PLACE_ID,
            pos_x=DEFAULT_POSITION[0],
            pos_y=DEFAULT_POSITION[1],
            pos_z=DEFAULT_POSITION[2],
            play_time_seconds=play_time_delta,
        )
        db.add(state)
        logger.info(f"Created missing player state for user {user_id}")
    else:
        # Increment in SQL so concurrent saves both count
        state.play_time_seconds = PlayerState.play_time_seconds + play_time_delta

    if place_id is not None:
        state.place_id = place_id
    if pos_x is not None:
        state.pos_x = pos_x
    if pos_y is not None:
        state.pos_y = pos_y
    if pos_z is not None:
        state.pos_z = pos_z

    db.commit()
    db.refresh(state)
    return state
