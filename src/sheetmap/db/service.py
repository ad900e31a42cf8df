"""Abstract DatabaseService with a shared connection pool."""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Any, Iterator

from sheetmap.db.types import Params, Row


class DatabaseService(ABC):
    """Small database interface used by the sheet store.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection, commits on success, rolls back on error
    and returns the connection on exit. Backends supply connections, the
    parameter placeholder and statement execution.
    """

    placeholder = "?"

    def __init__(self, pool_size: int = 4):
        self._pool_size = pool_size
        self._pool: Queue = Queue(maxsize=pool_size)
        self._local = threading.local()

    @abstractmethod
    def _open_connection(self) -> Any:
        """Open one backend connection for the pool."""

    @abstractmethod
    def _run(self, conn: Any, sql: str, params: Params) -> list[Row]:
        """Execute one statement on conn and return rows as dicts."""

    @abstractmethod
    def _run_script(self, conn: Any, sql: str) -> None:
        """Execute several ;-separated DDL statements on conn."""

    def connect(self) -> None:
        for _ in range(self._pool_size):
            self._pool.put(self._open_connection())

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self):
        return self._pool.get(timeout=30)

    def _release(self, conn) -> None:
        self._pool.put(conn)

    def _get_conn(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        """Execute a single statement inside the current transaction."""
        return self._run(self._get_conn(), sql, params or ())

    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements in their own transaction."""
        conn = self._acquire()
        try:
            self._run_script(conn, sql)
            conn.commit()
        finally:
            self._release(conn)

    def upsert(
        self,
        table: str,
        columns: list[str],
        row: tuple,
        conflict_columns: list[str],
        update_columns: list[str] | None = None,
    ) -> None:
        """Insert one row, updating update_columns on conflict.

        update_columns defaults to every non-conflict column.
        """
        if update_columns is None:
            update_columns = [c for c in columns if c not in conflict_columns]
        cols = ", ".join(columns)
        placeholders = ", ".join(self.placeholder for _ in columns)
        conflict_cols = ", ".join(conflict_columns)

        if update_columns:
            update_clause = ", ".join(f"{c} = excluded.{c}" for c in update_columns)
            action = f"DO UPDATE SET {update_clause}"
        else:
            action = "DO NOTHING"
        sql = (
            f"INSERT INTO {table} ({cols}) VALUES ({placeholders}) "
            f"ON CONFLICT ({conflict_cols}) {action}"
        )
        self.execute(sql, row)
