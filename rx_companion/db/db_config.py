# rx_companion/db/db_config.py

import sqlite3

from rx_companion.core.schedule_config import RX_DB_PATH


def get_sqlite_connection() -> sqlite3.Connection:
    """
    SQLite connection for the review-session checkpointer.
    """
    RX_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(RX_DB_PATH), check_same_thread=False)

    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")

    return conn
