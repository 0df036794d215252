"""
Identity resolver.

Runs catalog lookups through a `StatementExecutor` and turns their rows into
ids, persisted identities and observed object state.

Row-count contract for every lookup:
- exactly one row → the value
- zero rows       → NotFound
- several rows    → AmbiguousIdentity (never pick one)
"""

from __future__ import annotations

from src.enums import ObjectType
from src.materialize_engine.errors import AmbiguousIdentity, NotFound
from src.materialize_engine.execute.ports import Row, StatementExecutor
from src.materialize_engine.identifiers import ObjectIdentity
from src.materialize_engine.identity.persisted import PersistedIdentity
from src.materialize_engine.sql import (
    sql_select_object_id,
    sql_select_object_state,
    sql_select_role_id,
)
from src.materialize_engine.state.states import ObjectState


class IdentityResolver:
    """Resolve durable store ids for objects and roles."""

    def __init__(self, executor: StatementExecutor) -> None:
        self._executor = executor

    # ---------- public API ----------

    def object_id(self, identity: ObjectIdentity) -> str:
        """Catalog id of the object named by `identity`."""
        rows = self._executor.execute(sql_select_object_id(identity))
        row = _single_row(rows, f"{identity.object_type} {identity.display_name}")
        return str(row[0])

    def role_id(self, role_name: str) -> str:
        """Catalog id of role `role_name`."""
        rows = self._executor.execute(sql_select_role_id(role_name))
        row = _single_row(rows, f"ROLE {role_name}")
        return str(row[0])

    def persisted_identity(self, identity: ObjectIdentity, region: str) -> PersistedIdentity:
        """Look up the object id and pair it with `region`."""
        return PersistedIdentity(region=region, object_id=self.object_id(identity))

    def read_state(self, object_type: ObjectType, object_id: str) -> ObjectState:
        """Observed state of the object with catalog id `object_id`."""
        rows = self._executor.execute(sql_select_object_state(object_type, object_id))
        name, schema_name, database_name, owner, comment = _single_row(
            rows, f"{object_type} with id {object_id}"
        )
        return ObjectState(
            object_type=object_type,
            object_id=object_id,
            name=name,
            schema_name=schema_name or "",
            database_name=database_name or "",
            owner=owner or "",
            comment=comment or "",
        )


def _single_row(rows: list[Row], what: str) -> Row:
    if not rows:
        raise NotFound(f"{what} does not exist")
    if len(rows) > 1:
        raise AmbiguousIdentity(f"{what} matched {len(rows)} objects")
    return rows[0]
