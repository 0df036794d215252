"""
psycopg-backed StatementExecutor.

Materialize speaks the PostgreSQL wire protocol. DDL must not run inside an
explicit transaction block, so connections are opened in autocommit mode.
"""

from __future__ import annotations

import psycopg

from src.logger import LOGGER
from src.materialize_engine.errors import ExecutionError
from src.materialize_engine.execute.ports import Row


class PsycopgExecutor:
    """Execute statements on a single psycopg connection, one at a time."""

    def __init__(self, connection: psycopg.Connection) -> None:
        self._connection = connection

    @classmethod
    def connect(cls, dsn: str) -> PsycopgExecutor:
        """Open an autocommit connection for `dsn`."""
        return cls(psycopg.connect(dsn, autocommit=True))

    def execute(self, statement: str) -> list[Row]:
        """Run `statement`; driver errors surface as ExecutionError."""
        LOGGER.debug("Executing statement: %s", statement.strip())
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(statement)
                if cursor.description is None:
                    return []
                return [tuple(row) for row in cursor.fetchall()]
        except psycopg.Error as error:
            raise ExecutionError(statement, f"{type(error).__name__}: {error}") from error

    def close(self) -> None:
        self._connection.close()
