# forgeblock/api/game.py
import logging
from fastapi import APIRouter, Depends

from forgeblock.api import deps
from forgeblock.core.errors import AuthError, ServiceError
from forgeblock.models.player import GameAuthRequest, GameAuthResponse, SavePlayerRequest, SavePlayerResponse
from forgeblock.services.game_gateway import GameGateway

logger = logging.getLogger("forgeblock.api.game")
router = APIRouter()


@router.post("/game-auth", response_model=GameAuthResponse)
def game_auth(
    request_data: GameAuthRequest,
    gateway: GameGateway = Depends(deps.get_game_gateway),
):
    """
    Called by the game server with the token the player's client forwarded.
    Identity comes from the token and the stored session only, never from
    anything else the game server sends.
    """
    if request_data.token is None or request_data.token == "":
        raise AuthError("Token required")
    if not isinstance(request_data.token, str):
        logger.info("Game auth rejected: token is not a string")
        raise AuthError("Invalid token")
    try:
        snapshot = gateway.game_auth(request_data.token)
    except ServiceError as e:
        # Every failure looks the same to the caller
        logger.info(f"Game auth rejected: {e.message}")
        raise AuthError("Invalid token")
    return GameAuthResponse(**snapshot.model_dump())


@router.post("/save-player", response_model=SavePlayerResponse)
def save_player(
    request_data: SavePlayerRequest,
    gateway: GameGateway = Depends(deps.get_game_gateway),
):
    gateway.save_player(
        request_data.user_id,
        place_id=request_data.place_id,
        pos_x=request_data.pos_x,
        pos_y=request_data.pos_y,
        pos_z=request_data.pos_z,
        play_time_delta=request_data.play_time_delta,
    )
    return SavePlayerResponse(success=True)
