# app/db.py

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from .config import get_settings

# Execution option naming the SQLite BEGIN mode for a connection.
SQLITE_BEGIN = "sqlite_begin"


def enable_sqlite_write_locking(engine: Engine) -> None:
    """Let a transaction ask for the SQLite write lock up front.

    pysqlite defers BEGIN until the first write, so a check-then-insert
    sequence could interleave with another writer. A connection procured
    with ``{SQLITE_BEGIN: "IMMEDIATE"}`` opens with BEGIN IMMEDIATE and
    serializes the whole read/check/insert sequence; every other
    transaction opens with a plain (deferred) BEGIN so reads never wait
    on a booking in progress.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


def begin_write(session: Session) -> None:
    """Start a fresh transaction on the session that holds the write lock.

    Any read-only transaction already open is committed first; SQLite cannot
    upgrade a deferred transaction without risking SQLITE_BUSY.
    """
    if session.in_transaction():
        session.commit()
    session.connection(execution_options={SQLITE_BEGIN: "IMMEDIATE"})


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        # required for SQLite + FastAPI
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, echo=get_settings().sql_echo, **kwargs)
    if engine.dialect.name == "sqlite":
        enable_sqlite_write_locking(engine)
    return engine


# Engine = connection to the database
engine = make_engine(get_settings().database_url)


def create_db_and_tables(bind: Engine = engine) -> None:
    SQLModel.metadata.create_all(bind)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
