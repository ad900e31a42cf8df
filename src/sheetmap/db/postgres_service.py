"""PostgreSQL implementation of DatabaseService."""

import psycopg2
import psycopg2.extras

from sheetmap.db.service import DatabaseService
from sheetmap.db.types import Params, Row


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2."""

    placeholder = "%s"

    def __init__(self, dsn: str, pool_size: int = 4):
        super().__init__(pool_size)
        self._dsn = dsn

    def _open_connection(self):
        conn = psycopg2.connect(self._dsn)
        conn.autocommit = False
        return conn

    def _run(self, conn, sql: str, params: Params) -> list[Row]:
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def _run_script(self, conn, sql: str) -> None:
        with conn.cursor() as cur:
            for statement in sql.split(";"):
                statement = statement.strip()
                if statement:
                    cur.execute(statement)
