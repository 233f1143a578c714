import logging

from forgeblock.core.config import Settings
from forgeblock.crud.base import CredentialStore
from forgeblock.crud.memory_store import MemoryCredentialStore
from forgeblock.crud.sql_store import SqlCredentialStore
from forgeblock.db.session import build_engine, build_session_factory

logger = logging.getLogger("forgeblock.crud.stores")


def build_store(settings: Settings) -> CredentialStore:
    """Selects the store once at startup: SQL when DATABASE_URL is set, memory otherwise."""
    if settings.DATABASE_URL:
        engine = build_engine(settings.DATABASE_URL, timeout_seconds=settings.DB_TIMEOUT_SECONDS)
        store = SqlCredentialStore(build_session_factory(engine))
    else:
        logger.warning("No DATABASE_URL configured; using the non-durable in-memory store.")
        store = MemoryCredentialStore()
    store.initialize()
    return store
