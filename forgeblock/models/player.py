from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from forgeblock.models.common import CamelModel
from forgeblock.models.user import as_utc

DEFAULT_PLACE_ID = 1
DEFAULT_POSITION = (0.0, 5.0, 0.0)


class PlayerStateRecord(BaseModel):
    user_id: int
    # Nullable: rows written before a column existed may hold nothing here
    place_id: Optional[int] = None
    pos_x: Optional[float] = None
    pos_y: Optional[float] = None
    pos_z: Optional[float] = None
    play_time_seconds: int = 0
    last_save_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("last_save_at")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class PlayerSnapshot(CamelModel):
    """Verified identity plus where the player is, as handed to the game server."""
    user_id: int
    username: str
    place_id: int = DEFAULT_PLACE_ID
    pos_x: float = DEFAULT_POSITION[0]
    pos_y: float = DEFAULT_POSITION[1]
    pos_z: float = DEFAULT_POSITION[2]


class GameAuthRequest(CamelModel):
    # Any type: a non-string token fails like any other invalid token
    token: Any = None

class GameAuthResponse(PlayerSnapshot):
    success: bool = True

class SavePlayerRequest(CamelModel):
    user_id: int
    place_id: Optional[int] = None
    pos_x: Optional[float] = None
    pos_y: Optional[float] = None
    pos_z: Optional[float] = None
    play_time_delta: int = Field(default=0, description="Seconds played since the last save; added, never assigned")

class SavePlayerResponse(CamelModel):
    success: bool = True
