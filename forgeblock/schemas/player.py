# forgeblock/schemas/player.py
from sqlalchemy import Column, Float, ForeignKey, Integer, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from forgeblock.db.base_class import Base

class PlayerState(Base):
    """Gameplay state saved by the game server. Exactly one row per user."""
    __tablename__ = "player_states"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    place_id = Column(Integer, default=1, nullable=True)
    pos_x = Column(Float, default=0, nullable=True)
    pos_y = Column(Float, default=5, nullable=True)
    pos_z = Column(Float, default=0, nullable=True)
    play_time_seconds = Column(Integer, default=0, nullable=False, server_default='0')
    last_save_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="player_state")
