"""
Observed object state.

What the system catalog reports for an object *right now*, looked up by id.
Frozen; built only by the identity resolver.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.enums import ObjectType
from src.materialize_engine.identifiers import ObjectIdentity


@dataclass(frozen=True, slots=True)
class ObjectState:
    """Name, scope, owner and comment of a live object."""

    object_type: ObjectType
    object_id: str
    name: str
    schema_name: str
    database_name: str
    owner: str
    comment: str = ""

    @property
    def identity(self) -> ObjectIdentity:
        return ObjectIdentity(
            object_type=self.object_type,
            name=self.name,
            schema_name=self.schema_name,
            database_name=self.database_name,
        )
