from forgeblock.models.common import CamelModel


class StatusResponse(CamelModel):
    online: bool = True
    players: int
    version: str
    database: str  # "connected", "error" or "disconnected" (in-memory mode)

class StatsResponse(CamelModel):
    total_users: int
    recent_active: int
