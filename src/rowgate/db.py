import functools

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from rowgate.persistence.store import SqlAlchemyStore
from rowgate.settings import get_settings

Base = declarative_base()


def enable_sqlite_savepoints(engine):
    """
    Let SQLAlchemy issue BEGIN itself on pysqlite connections.

    The driver defers BEGIN until the first DML statement, which breaks
    SAVEPOINT. Connections that share a transaction (a StaticPool) skip the
    second BEGIN.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if not conn.connection.dbapi_connection.in_transaction:
            conn.exec_driver_sql("BEGIN")

    return engine


@functools.lru_cache()
def get_engine():
    """
    Get SQLAlchemy engine (cached).

    This function lazily initializes the engine to avoid import-time side effects.
    The engine is created using database_url from settings.
    """
    settings = get_settings()
    engine = create_engine(settings.database_url, pool_pre_ping=True, echo=settings.db_echo)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


@functools.lru_cache()
def get_sessionmaker():
    """
    Get SQLAlchemy sessionmaker (cached).

    This function lazily initializes the sessionmaker to avoid import-time side effects.
    """
    engine = get_engine()
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_store():
    """
    Dependency generator for FastAPI yielding a SqlAlchemyStore over a fresh session.

    The session is closed after use; committing is left to the caller.
    """
    SessionLocal = get_sessionmaker()
    db = SessionLocal()
    try:
        yield SqlAlchemyStore(db)
    finally:
        db.close()
