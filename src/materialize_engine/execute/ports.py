"""
Execution port.

- StatementExecutor: protocol for anything that can run one SQL statement
  against the store (psycopg connection, fakes in tests).
- Row: one result row as a plain tuple, columns in SELECT order.

Contract
--------
- `execute` runs exactly one statement and waits for it.
- Rows are returned for queries; DDL returns an empty list.
- Any rejection is raised as `ExecutionError`; there are no retries.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeAlias

Row: TypeAlias = tuple[Any, ...]


class StatementExecutor(Protocol):
    """Runs a single statement and returns its rows."""

    def execute(self, statement: str) -> list[Row]: ...
