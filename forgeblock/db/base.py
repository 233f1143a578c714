# forgeblock/db/base.py
# Import all the models, so that Base has them before being
# imported by Alembic or create_all()
from forgeblock.db.base_class import Base
from forgeblock.schemas.user import User
from forgeblock.schemas.player import PlayerState
