# forgeblock/db/session.py
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("forgeblock.db.session")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, timeout_seconds: int = 5) -> Engine:
    """
    Creates the SQLAlchemy engine with every storage call bounded by `timeout_seconds`:
    pool checkout, connection establishment and (on PostgreSQL) statement execution.
    """
    if database_url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout_seconds}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every session sees its own empty database
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_timeout"] = timeout_seconds
        engine = create_engine(database_url, **engine_kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        connect_args = {}
        if database_url.startswith("postgresql"):
            connect_args = {
                "connect_timeout": timeout_seconds,
                "options": f"-c statement_timeout={timeout_seconds * 1000}",
            }
        engine = create_engine(
            database_url,
            pool_pre_ping=True,
            pool_timeout=timeout_seconds,
            connect_args=connect_args,
        )
    logger.info(f"Database engine created for dialect '{engine.dialect.name}'")
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False so rows can be read after the session is closed
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
