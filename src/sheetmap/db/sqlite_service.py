"""SQLite implementation of DatabaseService."""

import sqlite3

from sheetmap.db.service import DatabaseService
from sheetmap.db.types import Params, Row


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3."""

    placeholder = "?"

    def __init__(self, db_path: str, pool_size: int = 4):
        super().__init__(pool_size)
        self._db_path = db_path

    def _open_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _run(self, conn: sqlite3.Connection, sql: str, params: Params) -> list[Row]:
        cursor = conn.execute(sql, params)
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _run_script(self, conn: sqlite3.Connection, sql: str) -> None:
        conn.executescript(sql)
