# forgeblock/api/status.py
import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends

from forgeblock.api import deps
from forgeblock.core.config import Settings
from forgeblock.core.errors import StorageError
from forgeblock.crud.base import CredentialStore
from forgeblock.models.system import StatsResponse, StatusResponse

logger = logging.getLogger("forgeblock.api.status")
router = APIRouter()


@router.get("/status", response_model=StatusResponse)
def get_status(
    store: CredentialStore = Depends(deps.get_store),
    settings: Settings = Depends(deps.get_settings),
):
    """Liveness and ops signal. Non-authoritative: never fails because the database does."""
    database = store.health()
    players = 0
    if database != "error":
        try:
            players = store.count_users()
        except StorageError:
            database = "error"
    return StatusResponse(online=True, players=players, version=settings.VERSION, database=database)


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    store: CredentialStore = Depends(deps.get_store),
    settings: Settings = Depends(deps.get_settings),
):
    since = datetime.now(timezone.utc) - timedelta(hours=settings.RECENT_ACTIVITY_HOURS)
    try:
        return StatsResponse(total_users=store.count_users(), recent_active=store.count_recent_logins(since))
    except StorageError:
        return StatsResponse(total_users=0, recent_active=0)
