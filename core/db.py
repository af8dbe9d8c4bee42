"""
core/db.py -- Engine construction shared by auth/store.py and catalog/store.py.

Both repositories talk to the same database (Settings.database_url) but own
their tables. Each builds its own Engine through make_engine() so the SQLite
connection tweaks live in one place.

Layer rule: core/ is the kernel. No imports from api/, auth/ or catalog/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an Engine, applying SQLite-only connect args and PRAGMAs."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # uvicorn and TestClient run sync routes in a threadpool.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
